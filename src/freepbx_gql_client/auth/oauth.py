"""OAuth2 client-credentials exchange and access token cache.

The token's lifetime is not tracked locally. A cached token is trusted until
a GraphQL call comes back 401, at which point the executor calls
``invalidate()`` and the next ``authenticate()`` fetches a fresh one.

Example:
    ```python
    manager = CredentialManager(config, http, RetryPolicy(max_retries=5))
    token = await manager.authenticate()  # POSTs to the token endpoint
    token = await manager.authenticate()  # cached, no request
    manager.invalidate()
    ```
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from freepbx_gql_client.errors.exceptions import AuthenticationError

if TYPE_CHECKING:
    from freepbx_gql_client.config import ClientConfig
    from freepbx_gql_client.transport.http import HttpTransport
    from freepbx_gql_client.transport.retry import RetryPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True, repr=False)
class Valid:
    """A cached access token."""

    token: str

    def __repr__(self) -> str:
        return "Valid(token=***)"


class Absent:
    """No token cached; the next request must authenticate."""

    _instance: "Absent | None" = None

    def __new__(cls) -> "Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Absent()"


ABSENT = Absent()

TokenState = Valid | Absent


class CredentialManager:
    """Owns the client id/secret and the cached access token.

    Args:
        config: Client configuration (endpoint and credentials)
        http: Transport adapter used for the token request
        retry_policy: Policy applied to the token request; only network
            failures are retried, a non-200 answer is final.
    """

    def __init__(self, config: "ClientConfig", http: "HttpTransport", retry_policy: "RetryPolicy") -> None:
        self._config = config
        self._http = http
        self._retry_policy = retry_policy
        self._state: TokenState = ABSENT

    @property
    def state(self) -> TokenState:
        return self._state

    async def authenticate(self) -> str:
        """Return the cached token, fetching one first if none is cached.

        Returns:
            The bearer token

        Raises:
            AuthenticationError: If the token endpoint answers anything but
                200 with an ``access_token``.
            NetworkError: If the endpoint stays unreachable after retries.
        """
        if isinstance(self._state, Valid):
            return self._state.token

        response = await self._retry_policy.run(self._request_token)

        if response.status_code != 200:
            raise AuthenticationError(
                f"Authentication failed: HTTP {response.status_code}",
                status_code=response.status_code,
                response=response,
            )

        try:
            token = response.json()["access_token"]
        except (ValueError, KeyError, TypeError):
            raise AuthenticationError(
                "Authentication failed: response did not contain an access_token",
                status_code=response.status_code,
                response=response,
            ) from None

        if not token:
            raise AuthenticationError(
                "Authentication failed: empty access_token",
                status_code=response.status_code,
                response=response,
            )

        self._state = Valid(token)
        logger.debug(f"Obtained access token from {self._config.oauth_endpoint} (***)")
        return token

    def invalidate(self) -> None:
        """Forget the cached token."""
        self._state = ABSENT

    async def _request_token(self) -> httpx.Response:
        return await self._http.send(
            "POST",
            self._config.oauth_endpoint,
            data={
                "grant_type": "client_credentials",
                "client_id": self._config.client_id,
                "client_secret": self._config.client_secret,
            },
        )
