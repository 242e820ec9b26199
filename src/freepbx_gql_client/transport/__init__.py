"""Transport layer: raw HTTP access and the retry policy.

Modules:
    http: One httpx.AsyncClient per client instance, transport errors mapped to NetworkError
    retry: Error classification and bounded exponential backoff

Example:
    ```python
    from freepbx_gql_client.transport import HttpTransport, RetryPolicy

    http = HttpTransport(timeout=30.0)
    policy = RetryPolicy(max_retries=5, retry_delay=1.0)
    response = await policy.run(lambda: http.send("GET", "https://pbx.example.com/"))
    ```
"""

from freepbx_gql_client.transport.http import HttpTransport, connection_error_code
from freepbx_gql_client.transport.retry import (
    CONNECTION_ERROR_CODES,
    RetryCategory,
    RetryPolicy,
    RetryState,
    classify_error,
)

__all__ = [
    "CONNECTION_ERROR_CODES",
    "HttpTransport",
    "RetryCategory",
    "RetryPolicy",
    "RetryState",
    "classify_error",
    "connection_error_code",
]
