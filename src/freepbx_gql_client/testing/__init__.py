"""Testing utilities for code built on the FreePBX client.

Modules:
    server: In-memory FreePBX token and GraphQL endpoints on httpx.MockTransport

Example:
    ```python
    from freepbx_gql_client import FreepbxGqlClient
    from freepbx_gql_client.testing import MockFreepbxServer, network_error


    async def test_retries_connection_reset():
        server = MockFreepbxServer()
        server.queue_gql(network_error("ECONNRESET"), {"ok": True})

        client = FreepbxGqlClient(server.base_url, server.client_options(), transport=server.transport)
        assert await client.request("query { ok }") == {"ok": True}
    ```
"""

from freepbx_gql_client.testing.server import MockFreepbxServer, network_error, status_payload

__all__ = ["MockFreepbxServer", "network_error", "status_payload"]
