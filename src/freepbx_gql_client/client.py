"""FreePBX GraphQL API client."""

from collections.abc import Mapping
from typing import Any

import httpx

from freepbx_gql_client.auth.credentials import CredentialResolver
from freepbx_gql_client.auth.oauth import CredentialManager
from freepbx_gql_client.config import ClientConfig
from freepbx_gql_client.errors.exceptions import TransactionError
from freepbx_gql_client.executor import GraphQLExecutor
from freepbx_gql_client.transactions import (
    DEFAULT_MAX_POLLS,
    DEFAULT_POLL_DELAY,
    FETCH_API_STATUS_QUERY,
    TransactionPoller,
)
from freepbx_gql_client.transport.http import HttpTransport
from freepbx_gql_client.transport.retry import RetryPolicy


class FreepbxGqlClient:
    """Async client for the FreePBX GraphQL API.

    Authenticates with the OAuth2 client-credentials flow on first use,
    retries transient failures, and can wait on asynchronous transactions.

    Args:
        base_url: FreePBX server root, e.g. ``https://pbx.example.com``
        config: ``{"client": {"id": ..., "secret": ...}}`` plus optional
            ``debug``, ``retry``, ``retry_delay`` (seconds) and ``timeout``
            (seconds)
        transport: Optional httpx transport, mostly for tests

    Raises:
        ConstructionError: If the client id or secret is missing, or an
            option is out of range. Raised before any network traffic.

    Example:
        ```python
        async with FreepbxGqlClient(
            "https://pbx.example.com",
            {"client": {"id": "my-app", "secret": "s3cret"}},
        ) as client:
            data = await client.request(gql("query { fetchAllExtensions { extension { extensionId } } }"))
        ```
    """

    def __init__(
        self,
        base_url: str,
        config: Mapping[str, Any] | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._init_from_config(ClientConfig.from_options(base_url, config), transport)

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "FreepbxGqlClient":
        client = cls.__new__(cls)
        client._init_from_config(config, transport)
        return client

    @classmethod
    def from_env(
        cls,
        base_url: str | None = None,
        *,
        resolver: CredentialResolver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **overrides: Any,
    ) -> "FreepbxGqlClient":
        """Build a client from ``FREEPBX_*`` environment variables (and .env)."""
        return cls.from_config(ClientConfig.from_env(base_url, resolver=resolver, **overrides), transport=transport)

    def _init_from_config(self, config: ClientConfig, transport: httpx.AsyncBaseTransport | None) -> None:
        self._config = config
        self._http = HttpTransport(timeout=config.timeout, transport=transport)
        retry_policy = RetryPolicy(max_retries=config.retry, retry_delay=config.retry_delay, debug=config.debug)
        self._credentials = CredentialManager(config, self._http, retry_policy)
        self._executor = GraphQLExecutor(
            endpoint=config.gql_endpoint,
            http=self._http,
            credentials=self._credentials,
            retry_policy=retry_policy,
        )
        self._poller = TransactionPoller(self.fetch_transaction_status, debug=config.debug)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> "FreepbxGqlClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client. The access token is not revoked."""
        await self._http.aclose()

    async def authenticate(self) -> str:
        """Obtain (or return the cached) access token."""
        return await self._credentials.authenticate()

    async def request(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute a GraphQL query or mutation and return its ``data``."""
        return await self._executor.request(query, variables)

    async def fetch_transaction_status(self, transaction_id: str) -> dict[str, Any]:
        """Fetch the status of a transaction.

        Returns:
            ``{"fetchApiStatus": {"status": bool, "message": str}}``
        """
        return await self.request(FETCH_API_STATUS_QUERY, {"transactionId": transaction_id})

    async def wait_for_completion(
        self,
        transaction_id: str,
        max_polls: int = DEFAULT_MAX_POLLS,
        poll_delay: float = DEFAULT_POLL_DELAY,
    ) -> dict[str, Any]:
        """Poll a transaction until it settles. See TransactionPoller."""
        return await self._poller.wait_for_completion(transaction_id, max_polls=max_polls, poll_delay=poll_delay)

    async def request_transaction_and_wait(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        max_polls: int = DEFAULT_MAX_POLLS,
        poll_delay: float = DEFAULT_POLL_DELAY,
    ) -> dict[str, Any]:
        """Run a transactional mutation and wait for it to finish.

        The transaction id is read from the first top-level field of the
        mutation result, whatever its name.

        Raises:
            TransactionError: If the result carries no ``transaction_id``,
                or the transaction fails or times out.
        """
        data = await self.request(query, variables)

        envelope = next(iter(data.values()), None) if data else None
        transaction_id = envelope.get("transaction_id") if isinstance(envelope, dict) else None
        if transaction_id is None:
            raise TransactionError("Mutation response did not contain a transaction_id", payload=data)

        return await self.wait_for_completion(str(transaction_id), max_polls=max_polls, poll_delay=poll_delay)
