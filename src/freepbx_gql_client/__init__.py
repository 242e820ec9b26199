"""FreePBX GraphQL Client - async client for the FreePBX GraphQL API.

- OAuth2 client-credentials authentication with a cached bearer token
- Bounded exponential-backoff retries for network failures
- Transparent re-authentication when the token expires (HTTP 401)
- Polling of asynchronous server-side transactions

Example:
    ```python
    from freepbx_gql_client import FreepbxGqlClient, gql

    async with FreepbxGqlClient(
        "https://pbx.example.com",
        {"client": {"id": "my-app", "secret": "s3cret"}, "retry": 3},
    ) as client:
        result = await client.request_transaction_and_wait(
            gql(
                '''
                mutation {
                  doreload(input: {}) { status message transaction_id }
                }
                '''
            )
        )
    ```
"""

__version__ = "0.1.0"

from freepbx_gql_client.client import FreepbxGqlClient  # noqa: E402
from freepbx_gql_client.config import ClientConfig  # noqa: E402
from freepbx_gql_client.errors import (  # noqa: E402
    AuthenticationError,
    ConstructionError,
    FreepbxError,
    GraphQLRequestError,
    GraphQLResponseError,
    NetworkError,
    TransactionError,
    UnauthorizedError,
)
from freepbx_gql_client.executor import gql  # noqa: E402

__all__ = [
    "AuthenticationError",
    "ClientConfig",
    "ConstructionError",
    "FreepbxError",
    "FreepbxGqlClient",
    "GraphQLRequestError",
    "GraphQLResponseError",
    "NetworkError",
    "TransactionError",
    "UnauthorizedError",
    "__version__",
    "gql",
]
