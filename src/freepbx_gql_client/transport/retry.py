"""Retry policy for FreePBX OAuth and GraphQL calls.

Every failed attempt is classified into one of three categories:

| Category | Trigger | Action |
|----------|---------|--------|
| `NETWORK` | `NetworkError` with a connection code, or a timeout | Sleep, double the delay, retry |
| `AUTH_EXPIRED` | `UnauthorizedError` (HTTP 401) | Invalidate credentials, retry immediately |
| `FATAL` | Anything else | Re-raise |

Both retry categories draw from one budget of ``max_retries`` per call, so a
call alternating network and auth failures still makes at most
``max_retries + 1`` attempts. On exhaustion the last error is re-raised
unchanged.

## Example

```python
from freepbx_gql_client.transport.retry import RetryPolicy

policy = RetryPolicy(max_retries=5, retry_delay=1.0)

data = await policy.run(
    lambda: execute(query),
    prepare=build_handle,
    on_auth_expired=invalidate,
)
```
"""

import asyncio
import enum
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from freepbx_gql_client.errors.exceptions import NetworkError, UnauthorizedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Connection failures worth another attempt
CONNECTION_ERROR_CODES: frozenset[str] = frozenset(["ECONNREFUSED", "ECONNRESET", "ETIMEDOUT", "ENOTFOUND"])


class RetryCategory(enum.Enum):
    NETWORK = "network"
    AUTH_EXPIRED = "auth_expired"
    FATAL = "fatal"


def classify_error(exc: BaseException) -> RetryCategory:
    """Classify a failed attempt.

    Args:
        exc: The exception raised by the attempt

    Returns:
        The retry category for the error
    """
    if isinstance(exc, NetworkError) and (exc.code in CONNECTION_ERROR_CODES or exc.timed_out):
        return RetryCategory.NETWORK

    if isinstance(exc, UnauthorizedError):
        return RetryCategory.AUTH_EXPIRED

    return RetryCategory.FATAL


@dataclass
class RetryState:
    """Per-call retry bookkeeping, discarded once the call settles."""

    remaining_attempts: int
    current_delay: float


class RetryPolicy:
    """Bounded retry with exponential backoff for network failures.

    Args:
        max_retries: Retries allowed per call after the first attempt (default: 5)
        retry_delay: Initial backoff delay in seconds (default: 1.0)
        debug: Log a trace of every caught error before retrying (default: False)

    Example:
        ```python
        policy = RetryPolicy(max_retries=3, retry_delay=0.5)
        policy.backoff_delays()  # [0.5, 1.0, 2.0]
        ```
    """

    def __init__(self, *, max_retries: int = 5, retry_delay: float = 1.0, debug: bool = False) -> None:
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.debug = debug

    def new_state(self) -> RetryState:
        return RetryState(remaining_attempts=self.max_retries, current_delay=self.retry_delay)

    def backoff_delays(self) -> list[float]:
        """Delays used if every retry of a call is a network failure.

        Returns:
            ``[D, 2D, 4D, ...]`` with one entry per allowed retry
        """
        return [self._calculate_backoff_delay(retry_number) for retry_number in range(1, self.max_retries + 1)]

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        prepare: Callable[[], Awaitable[Any]] | None = None,
        on_auth_expired: Callable[[], Any] | None = None,
    ) -> T:
        """Run an operation under this policy.

        Args:
            operation: Zero-argument coroutine function performing one attempt
            prepare: Awaited before every attempt. Its errors are not
                classified and propagate straight to the caller.
            on_auth_expired: Called (and awaited if it returns an awaitable)
                before retrying an auth-expired attempt. Without it, a 401 is
                fatal.

        Returns:
            The operation's result

        Raises:
            The last error once it is fatal or the retry budget is spent
        """
        state = self.new_state()

        while True:
            if prepare is not None:
                await prepare()

            try:
                return await operation()
            except Exception as e:
                category = classify_error(e)

                if category is RetryCategory.FATAL or state.remaining_attempts <= 0:
                    raise

                if category is RetryCategory.AUTH_EXPIRED and on_auth_expired is None:
                    raise

                attempt = self.max_retries - state.remaining_attempts + 1
                if self.debug:
                    logger.debug(
                        f"Caught GraphQL error, retrying ({category.value}, attempt {attempt}/{self.max_retries}): {e!r}"
                    )

                state.remaining_attempts -= 1

                if category is RetryCategory.NETWORK:
                    await asyncio.sleep(state.current_delay)
                    state.current_delay *= 2
                    continue

                # Expired token: drop cached credentials, no backoff
                result = on_auth_expired()
                if inspect.isawaitable(result):
                    await result

    def _calculate_backoff_delay(self, retry_number: int) -> float:
        """Calculate exponential backoff delay.

        Uses formula: retry_delay * (2 ** (retry_number - 1))
        Default backoff sequence: 1, 2, 4, 8, 16 seconds

        Args:
            retry_number: Current retry attempt (1-indexed)

        Returns:
            Delay in seconds
        """
        return self.retry_delay * (2 ** (retry_number - 1))
