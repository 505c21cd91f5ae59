"""HTTP client module for botctl.

Classes:
    :class:`SyncClient` -- blocking client backed by :class:`httpx.Client`
    with bearer auth, retry and status-to-exception mapping.
    :class:`ManagementApi` -- typed deployment and channel operations.

Example::

    from botctl.client import ManagementApi

    api = ManagementApi(resolve_config())
    for deployment in api.list_deployments("my-bot"):
        print(deployment.name)
"""

from botctl.client.management import ManagementApi
from botctl.client.sync_client import SyncClient

__all__ = ["ManagementApi", "SyncClient"]
