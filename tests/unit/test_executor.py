"""Tests for the authenticated GraphQL request executor."""

import httpx
import pytest

from freepbx_gql_client.auth.oauth import ABSENT, CredentialManager, Valid
from freepbx_gql_client.config import ClientConfig
from freepbx_gql_client.errors.exceptions import (
    AuthenticationError,
    GraphQLRequestError,
    GraphQLResponseError,
    NetworkError,
    UnauthorizedError,
)
from freepbx_gql_client.executor import AuthenticatedClientHandle, GraphQLExecutor, gql
from freepbx_gql_client.testing import network_error
from freepbx_gql_client.transport.http import HttpTransport
from freepbx_gql_client.transport.retry import RetryPolicy

QUERY = gql(
    """
    query {
      fetchAllExtensions { extension { extensionId } }
    }
    """
)


def make_executor(server, retry=3, retry_delay=1.0):
    config = ClientConfig(
        base_url=server.base_url,
        client_id=server.client_id,
        client_secret=server.client_secret,
        retry=retry,
        retry_delay=retry_delay,
    )
    http = HttpTransport(transport=server.transport)
    policy = RetryPolicy(max_retries=retry, retry_delay=retry_delay)
    credentials = CredentialManager(config, http, policy)
    executor = GraphQLExecutor(endpoint=config.gql_endpoint, http=http, credentials=credentials, retry_policy=policy)
    return executor, credentials


class TestGql:
    @pytest.mark.unit
    def test_dedents_and_strips(self):
        assert QUERY.startswith("query {\n  fetchAllExtensions")
        assert QUERY.endswith("}")


class TestHandle:
    """Lazy construction and memoization of the authenticated handle."""

    @pytest.mark.unit
    async def test_build_handle_authenticates_once(self, server):
        executor, credentials = make_executor(server)
        assert executor.handle is None

        handle = await executor.build_handle()

        assert handle == AuthenticatedClientHandle(endpoint="https://pbx.example.com/admin/api/api/gql", token="token-1")
        assert handle.headers == {"Authorization": "Bearer token-1"}
        assert await executor.build_handle() is handle
        assert len(server.token_requests) == 1

    @pytest.mark.unit
    async def test_handle_reuses_cached_token(self, server):
        executor, credentials = make_executor(server)
        await credentials.authenticate()

        await executor.build_handle()

        assert len(server.token_requests) == 1

    @pytest.mark.unit
    async def test_invalidate_clears_handle_and_token(self, server):
        executor, credentials = make_executor(server)
        await executor.build_handle()

        executor.invalidate()

        assert executor.handle is None
        assert credentials.state is ABSENT

    @pytest.mark.unit
    def test_handle_repr_masks_token(self):
        assert "secret-token" not in repr(AuthenticatedClientHandle(endpoint="https://x", token="secret-token"))


class TestRequest:
    """Executing queries."""

    @pytest.mark.unit
    async def test_returns_data_and_sends_bearer(self, server):
        server.queue_gql({"fetchAllExtensions": {"extension": []}})
        executor, _ = make_executor(server)

        data = await executor.request(QUERY, {"first": 10})

        assert data == {"fetchAllExtensions": {"extension": []}}
        assert server.gql_tokens == ["token-1"]
        assert server.gql_payloads == [{"query": QUERY, "variables": {"first": 10}}]
        assert str(server.gql_requests[0].url) == "https://pbx.example.com/admin/api/api/gql"

    @pytest.mark.unit
    async def test_omits_variables_when_none(self, server):
        server.queue_gql({})
        executor, _ = make_executor(server)

        await executor.request(QUERY)

        assert server.gql_payloads == [{"query": QUERY}]

    @pytest.mark.unit
    async def test_handle_reused_across_requests(self, server):
        server.queue_gql({"a": 1}, {"b": 2})
        executor, _ = make_executor(server)

        await executor.request(QUERY)
        await executor.request(QUERY)

        assert len(server.token_requests) == 1
        assert server.gql_tokens == ["token-1", "token-1"]

    @pytest.mark.unit
    async def test_graphql_errors_are_fatal(self, server, sleeps):
        server.queue_gql(httpx.Response(200, json={"data": None, "errors": [{"message": "Cannot query field"}]}))
        executor, _ = make_executor(server)

        with pytest.raises(GraphQLResponseError, match="Cannot query field"):
            await executor.request(QUERY)

        assert len(server.gql_requests) == 1

    @pytest.mark.unit
    async def test_non_json_body(self, server):
        server.queue_gql(httpx.Response(200, text="<html>oops</html>"))
        executor, _ = make_executor(server)

        with pytest.raises(GraphQLResponseError, match="non-JSON"):
            await executor.request(QUERY)

    @pytest.mark.unit
    async def test_server_error_is_fatal(self, server, sleeps):
        server.queue_gql(httpx.Response(500, text="Internal Server Error"))
        executor, _ = make_executor(server)

        with pytest.raises(GraphQLRequestError) as exc_info:
            await executor.request(QUERY)

        assert exc_info.value.status_code == 500
        assert len(server.gql_requests) == 1
        assert sleeps == []


class TestRequestNetworkRetries:
    """Transient network failures on the GraphQL endpoint."""

    @pytest.mark.unit
    async def test_retries_with_doubling_delay(self, server, sleeps):
        server.queue_gql(
            network_error("ECONNRESET"),
            network_error("ETIMEDOUT"),
            network_error("ECONNREFUSED"),
            {"ok": True},
        )
        executor, _ = make_executor(server, retry=5, retry_delay=1.0)

        assert await executor.request(QUERY) == {"ok": True}
        assert sleeps == [1.0, 2.0, 4.0]
        assert len(server.gql_requests) == 4
        # Same token throughout; network errors never re-authenticate
        assert len(server.token_requests) == 1

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "dropped",
        [httpx.RemoteProtocolError("Server disconnected without sending a response."), httpx.ReadError("")],
    )
    async def test_dropped_connection_is_retried(self, server, sleeps, dropped):
        server.queue_gql(dropped, {"ok": True})
        executor, _ = make_executor(server, retry=3, retry_delay=1.0)

        assert await executor.request(QUERY) == {"ok": True}
        assert len(server.gql_requests) == 2
        assert sleeps == [1.0]

    @pytest.mark.unit
    async def test_exhaustion_raises_last_error(self, server, sleeps):
        server.queue_gql(*(network_error("ECONNREFUSED") for _ in range(3)))
        executor, _ = make_executor(server, retry=2, retry_delay=0.5)

        with pytest.raises(NetworkError) as exc_info:
            await executor.request(QUERY)

        assert exc_info.value.code == "ECONNREFUSED"
        assert len(server.gql_requests) == 3
        assert sleeps == [0.5, 1.0]


class TestRequestAuthExpiry:
    """A 401 drops the token and handle and re-authenticates immediately."""

    @pytest.mark.unit
    async def test_401_reauthenticates_without_delay(self, server, sleeps):
        server.queue_gql(httpx.Response(401, text="Unauthorized"), {"ok": True})
        executor, credentials = make_executor(server)

        assert await executor.request(QUERY) == {"ok": True}

        assert len(server.token_requests) == 2
        assert server.gql_tokens == ["token-1", "token-2"]
        assert sleeps == []
        assert credentials.state == Valid("token-2")
        assert executor.handle.token == "token-2"

    @pytest.mark.unit
    async def test_persistent_401_exhausts_budget(self, server, sleeps):
        server.queue_gql(*(httpx.Response(401) for _ in range(3)))
        executor, _ = make_executor(server, retry=2)

        with pytest.raises(UnauthorizedError):
            await executor.request(QUERY)

        assert len(server.gql_requests) == 3
        assert len(server.token_requests) == 3
        assert sleeps == []

    @pytest.mark.unit
    async def test_network_and_auth_share_budget(self, server, sleeps):
        """One budget covers both kinds of retry; they are not counted separately."""
        server.queue_gql(
            network_error("ECONNRESET"),
            httpx.Response(401),
            network_error("ECONNRESET"),
        )
        executor, _ = make_executor(server, retry=2, retry_delay=1.0)

        with pytest.raises(NetworkError):
            await executor.request(QUERY)

        assert len(server.gql_requests) == 3
        assert sleeps == [1.0]


class TestRequestAuthenticationFailure:
    """Failures of the token endpoint surface from request()."""

    @pytest.mark.unit
    async def test_initial_authentication_error(self, server):
        server.queue_token(httpx.Response(401, json={"error": "invalid_client"}))
        executor, _ = make_executor(server)

        with pytest.raises(AuthenticationError):
            await executor.request(QUERY)

        assert server.gql_requests == []
        assert executor.handle is None

    @pytest.mark.unit
    async def test_reauthentication_error_after_401(self, server, sleeps):
        server.queue_token("token-a", httpx.Response(400))
        server.queue_gql(httpx.Response(401))
        executor, _ = make_executor(server)

        with pytest.raises(AuthenticationError):
            await executor.request(QUERY)

        assert len(server.gql_requests) == 1
        assert len(server.token_requests) == 2

    @pytest.mark.unit
    async def test_authentication_network_errors_not_retried_twice(self, server, sleeps):
        """The token request has its own retry budget; request() does not multiply it."""
        server.queue_token(*(network_error("ECONNREFUSED") for _ in range(3)))
        executor, _ = make_executor(server, retry=2, retry_delay=1.0)

        with pytest.raises(NetworkError):
            await executor.request(QUERY)

        assert len(server.token_requests) == 3
        assert sleeps == [1.0, 2.0]
