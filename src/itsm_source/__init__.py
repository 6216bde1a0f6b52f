"""itsm-source: typed batch reads from ServiceNow-style Table APIs."""

__version__ = "0.1.0"
