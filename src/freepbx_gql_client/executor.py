"""Authenticated GraphQL request execution."""

import textwrap
from dataclasses import dataclass
from typing import Any

from freepbx_gql_client.auth.oauth import CredentialManager
from freepbx_gql_client.errors.exceptions import GraphQLResponseError
from freepbx_gql_client.errors.handler import raise_for_graphql_errors, raise_for_status
from freepbx_gql_client.transport.http import HttpTransport
from freepbx_gql_client.transport.retry import RetryPolicy


def gql(source: str) -> str:
    """Normalize an inline GraphQL document (dedent and strip)."""
    return textwrap.dedent(source).strip()


@dataclass(frozen=True, repr=False)
class AuthenticatedClientHandle:
    """GraphQL endpoint bound to one access token."""

    endpoint: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    def __repr__(self) -> str:
        return f"AuthenticatedClientHandle(endpoint={self.endpoint!r}, token=***)"


class GraphQLExecutor:
    """Runs GraphQL operations with authentication and retries.

    The handle is built lazily on first use and memoized. A 401 drops both
    the handle and the cached token so the retry re-authenticates from
    scratch.

    Args:
        endpoint: GraphQL endpoint URL
        http: Transport adapter
        credentials: Token source
        retry_policy: Policy wrapped around every call
    """

    def __init__(
        self,
        *,
        endpoint: str,
        http: HttpTransport,
        credentials: CredentialManager,
        retry_policy: RetryPolicy,
    ) -> None:
        self._endpoint = endpoint
        self._http = http
        self._credentials = credentials
        self._retry_policy = retry_policy
        self._handle: AuthenticatedClientHandle | None = None

    @property
    def handle(self) -> AuthenticatedClientHandle | None:
        return self._handle

    async def build_handle(self) -> AuthenticatedClientHandle:
        """Return the memoized handle, authenticating first if needed."""
        if self._handle is not None:
            return self._handle

        token = await self._credentials.authenticate()
        self._handle = AuthenticatedClientHandle(endpoint=self._endpoint, token=token)
        return self._handle

    def invalidate(self) -> None:
        """Drop the handle and the cached token."""
        self._handle = None
        self._credentials.invalidate()

    async def request(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL query or mutation.

        Args:
            query: GraphQL document
            variables: Variables for the document

        Returns:
            The ``data`` member of the response

        Raises:
            AuthenticationError: If the initial authentication fails
            NetworkError: If the server stays unreachable after retries
            GraphQLRequestError: On a non-2xx answer (UnauthorizedError for a
                401 that persisted through retries)
            GraphQLResponseError: If the server reports GraphQL errors
        """
        return await self._retry_policy.run(
            lambda: self._execute(query, variables),
            prepare=self.build_handle,
            on_auth_expired=self.invalidate,
        )

    async def _execute(self, query: str, variables: dict[str, Any] | None) -> dict[str, Any]:
        handle = await self.build_handle()

        payload: dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables

        response = await self._http.send("POST", handle.endpoint, json=payload, headers=handle.headers)
        raise_for_status(response)

        try:
            body = response.json()
        except ValueError:
            raise GraphQLResponseError(f"GraphQL endpoint returned non-JSON body: {response.text[:200]}") from None

        return raise_for_graphql_errors(body)
