"""HTTP transport adapter shared by the OAuth and GraphQL layers.

Wraps a single ``httpx.AsyncClient`` per FreePBX client instance and turns
httpx transport failures into ``NetworkError`` with a symbolic connection
error code, so the retry policy can classify them without knowing httpx.
"""

import errno
import socket
from typing import Any

import httpx

from freepbx_gql_client import __version__
from freepbx_gql_client.errors.exceptions import NetworkError

USER_AGENT = f"freepbx-gql-client/{__version__}"

_ERRNO_CODES: dict[int, str] = {
    errno.ECONNREFUSED: "ECONNREFUSED",
    errno.ECONNRESET: "ECONNRESET",
    errno.ETIMEDOUT: "ETIMEDOUT",
}


def connection_error_code(exc: BaseException) -> str | None:
    """Return the symbolic connection error code behind a transport failure.

    Walks the ``__cause__``/``__context__`` chain looking for the OS-level
    error httpcore wrapped. Timeouts map to ``ETIMEDOUT`` and DNS failures to
    ``ENOTFOUND``. An ``httpx.ConnectError`` with no recognizable cause is
    reported as ``ECONNREFUSED`` (anyio collapses multi-address connect
    failures into a bare OSError). A read, write, or remote protocol error
    with no recognizable cause means the server closed the connection and is
    reported as ``ECONNRESET``.

    Args:
        exc: The exception raised by httpx

    Returns:
        Error code string, or None if the failure is not a connection error
    """
    if isinstance(exc, httpx.TimeoutException):
        return "ETIMEDOUT"

    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))

        if isinstance(current, socket.gaierror):
            return "ENOTFOUND"
        if isinstance(current, ConnectionRefusedError):
            return "ECONNREFUSED"
        if isinstance(current, ConnectionResetError):
            return "ECONNRESET"
        if isinstance(current, TimeoutError):
            return "ETIMEDOUT"
        if isinstance(current, OSError) and current.errno in _ERRNO_CODES:
            return _ERRNO_CODES[current.errno]

        current = current.__cause__ or current.__context__

    if isinstance(exc, httpx.ConnectError):
        return "ECONNREFUSED"
    # Peer dropped an established connection, e.g. a stale keep-alive
    if isinstance(exc, (httpx.RemoteProtocolError, httpx.ReadError, httpx.WriteError)):
        return "ECONNRESET"

    return None


class HttpTransport:
    """Raw HTTP access for one client instance.

    Args:
        timeout: Request timeout in seconds
        transport: Optional httpx transport (``httpx.MockTransport`` in tests)

    Example:
        ```python
        http = HttpTransport(timeout=30.0)
        response = await http.send("POST", "https://pbx.example.com/admin/api/api/token", data={...})
        await http.aclose()
        ```
    """

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, converting transport failures to NetworkError.

        Args:
            method: HTTP method
            url: Absolute URL
            **kwargs: Passed through to ``httpx.AsyncClient.request``

        Returns:
            The HTTP response, whatever its status code

        Raises:
            NetworkError: On connection, DNS, or timeout failures
        """
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            code = connection_error_code(e)
            timed_out = isinstance(e, httpx.TimeoutException)
            raise NetworkError(
                f"{method} {url} failed: {str(e) or type(e).__name__}",
                code=code,
                timed_out=timed_out,
            ) from e

    async def aclose(self) -> None:
        await self._client.aclose()
