"""Clients for remote ServiceNow APIs.

Example:
    from itsm_source.plugins.clients import TableAPIClient

    client = TableAPIClient(base_url=..., client_id=..., client_secret=...,
                            user=..., password=...)
    rows = client.fetch_table_records("incident", None, None, 0, 100)
"""

from itsm_source.plugins.clients.table_api import TableAPIClient, build_date_query

__all__ = [
    "TableAPIClient",
    "build_date_query",
]
