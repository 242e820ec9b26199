"""Structured exceptions for FreePBX GraphQL client errors."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

    from freepbx_gql_client.errors.models import GraphQLErrorDetail


class FreepbxError(Exception):
    """Base exception for all client errors."""

    pass


class ConstructionError(FreepbxError, ValueError):
    """Invalid or missing client configuration. Never retried."""

    pass


class CredentialNotFoundError(ConstructionError):
    """Raised when a required credential cannot be resolved.

    Attributes:
        env_var_name: The environment variable name that was checked (if any).
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class CredentialFileError(ConstructionError):
    """Raised when a credential file cannot be read."""

    pass


class AuthenticationError(FreepbxError):
    """The OAuth token endpoint did not hand out an access token."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: "httpx.Response | None" = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class NetworkError(FreepbxError):
    """Transport-level failure (connection refused, reset, DNS, timeout).

    Attributes:
        code: Symbolic errno name such as ``ECONNREFUSED``, or None when the
            failure could not be tied to a connection error code.
        timed_out: True when the request hit the client timeout.
    """

    def __init__(self, message: str, code: str | None = None, timed_out: bool = False):
        super().__init__(message)
        self.code = code
        self.timed_out = timed_out


class GraphQLRequestError(FreepbxError):
    """Non-2xx response from the GraphQL endpoint."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: "httpx.Response | None" = None,
        errors: "list[GraphQLErrorDetail] | None" = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
        self.errors = errors if errors is not None else []


class UnauthorizedError(GraphQLRequestError):
    """401 Unauthorized. The bearer token is assumed to have expired."""

    pass


class GraphQLResponseError(FreepbxError):
    """The server answered with a GraphQL ``errors`` array."""

    def __init__(
        self,
        message: str,
        errors: "list[GraphQLErrorDetail] | None" = None,
        data: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.errors = errors if errors is not None else []
        self.data = data


class TransactionError(FreepbxError):
    """A server-side transaction failed or did not finish in time.

    Failure and timeout share this type; inspect ``payload`` for the last
    status the server reported.
    """

    def __init__(
        self,
        message: str,
        payload: dict[str, Any] | None = None,
        transaction_id: str | None = None,
    ):
        super().__init__(message)
        self.payload = payload
        self.transaction_id = transaction_id
