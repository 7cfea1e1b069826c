"""HTTP client for the PRC server API.

:class:`PRCClient` is an asynchronous client backed by
:class:`httpx.AsyncClient`.  Every endpoint goes through one request
pipeline that handles caching, rate-limit retries and error mapping.

Example::

    from prcapi.client import PRCClient

    async with PRCClient(server_key="...") as client:
        status = await client.get_server_status()
"""

from prcapi.client.async_client import PRCClient

__all__ = ["PRCClient"]
