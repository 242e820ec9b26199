"""Polling for FreePBX asynchronous transactions.

Some FreePBX mutations (module installs, reloads, backups) return a
``transaction_id`` instead of a result. The outcome is read back through the
``fetchApiStatus`` query:

| `status` | `message` | Outcome |
|----------|-----------|---------|
| `true` | `"Executed"` | Succeeded |
| `true` | `"Processing"` | Still running, poll again |
| `true` | anything else | Failed |
| `false` | any | Failed |

A response without a ``fetchApiStatus.status`` field is treated as a
transient glitch and polled again.
"""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from freepbx_gql_client.errors.exceptions import TransactionError
from freepbx_gql_client.executor import gql

logger = logging.getLogger(__name__)

DEFAULT_MAX_POLLS = 300
DEFAULT_POLL_DELAY = 1.0

FETCH_API_STATUS_QUERY = gql(
    """
    query FetchApiStatus($transactionId: ID!) {
      fetchApiStatus(txnId: $transactionId) {
        status
        message
      }
    }
    """
)

MESSAGE_EXECUTED = "Executed"
MESSAGE_PROCESSING = "Processing"


class TransactionOutcome(enum.Enum):
    SUCCEEDED = "succeeded"
    PENDING = "pending"
    FAILED = "failed"


@dataclass(frozen=True)
class TransactionStatus:
    completed: bool
    message: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TransactionStatus | None":
        """Parse a ``FetchApiStatus`` result; None if it is malformed."""
        if not isinstance(payload, dict):
            return None

        status = payload.get("fetchApiStatus")
        if not isinstance(status, dict) or "status" not in status:
            return None

        return cls(completed=status["status"] is True, message=status.get("message"))

    @property
    def outcome(self) -> TransactionOutcome:
        if not self.completed:
            return TransactionOutcome.FAILED
        if self.message == MESSAGE_EXECUTED:
            return TransactionOutcome.SUCCEEDED
        if self.message == MESSAGE_PROCESSING:
            return TransactionOutcome.PENDING
        # Unknown messages are failures until the server contract says otherwise
        return TransactionOutcome.FAILED


class TransactionPoller:
    """Polls a transaction's status until it settles.

    Args:
        fetch_status: Coroutine function returning the ``FetchApiStatus``
            payload for a transaction id
        debug: Log every poll (default: False)

    Example:
        ```python
        poller = TransactionPoller(client.fetch_transaction_status)
        payload = await poller.wait_for_completion("42", max_polls=60, poll_delay=2.0)
        ```
    """

    def __init__(self, fetch_status: Callable[[str], Awaitable[dict[str, Any]]], *, debug: bool = False) -> None:
        self._fetch_status = fetch_status
        self.debug = debug

    async def wait_for_completion(
        self,
        transaction_id: str,
        max_polls: int = DEFAULT_MAX_POLLS,
        poll_delay: float = DEFAULT_POLL_DELAY,
    ) -> dict[str, Any]:
        """Poll until the transaction succeeds, fails, or polls run out.

        Args:
            transaction_id: Id returned by the transactional mutation
            max_polls: Total number of status queries allowed
            poll_delay: Seconds to wait between polls

        Returns:
            The final ``FetchApiStatus`` payload

        Raises:
            TransactionError: On failure or timeout, with the last payload
                attached
            ValueError: If max_polls < 1 or poll_delay < 0
        """
        if max_polls < 1:
            raise ValueError(f"max_polls must be at least 1, got {max_polls}")
        if poll_delay < 0:
            raise ValueError(f"poll_delay must not be negative, got {poll_delay}")

        self._log(f"Waiting for transaction {transaction_id} to complete")
        payload: dict[str, Any] | None = None

        for poll in range(1, max_polls + 1):
            payload = await self._fetch_status(transaction_id)
            status = TransactionStatus.from_payload(payload)

            if status is None:
                self._log(f"Received invalid status response for transaction {transaction_id}: {payload!r}")
            elif status.outcome is TransactionOutcome.SUCCEEDED:
                self._log(f"Transaction {transaction_id} executed after {poll} poll(s)")
                return payload
            elif status.outcome is TransactionOutcome.FAILED:
                raise TransactionError("Transaction failed", payload=payload, transaction_id=transaction_id)
            else:
                self._log(f"Transaction {transaction_id} still processing (poll {poll}/{max_polls})")

            if poll < max_polls:
                await asyncio.sleep(poll_delay)

        raise TransactionError(
            "Timeout waiting on transaction to complete",
            payload=payload,
            transaction_id=transaction_id,
        )

    def _log(self, message: str) -> None:
        if self.debug:
            logger.debug(message)
