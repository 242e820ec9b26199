"""GraphQL error entry models."""

from dataclasses import dataclass
from typing import Any

import httpx


@dataclass
class GraphQLErrorDetail:
    """One entry of a GraphQL ``errors`` array.

    See: https://spec.graphql.org/October2021/#sec-Errors
    """

    message: str | None = None  # Human-readable description
    locations: list[dict[str, int]] | None = None  # Positions in the query document
    path: list[str | int] | None = None  # Response path of the failing field

    # Server-specific members (error codes, debug info)
    extensions: dict[str, Any] | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "GraphQLErrorDetail":
        """Build an error detail from a single ``errors`` entry.

        Non-dict entries are kept as their string form in ``message``.
        """
        if not isinstance(payload, dict):
            return cls(message=str(payload))

        message = payload.get("message")
        return cls(
            message=str(message) if message is not None else None,
            locations=payload.get("locations"),
            path=payload.get("path"),
            extensions=payload.get("extensions") or None,
        )

    @classmethod
    def list_from_body(cls, body: Any) -> list["GraphQLErrorDetail"]:
        """Parse the ``errors`` array of a decoded response body."""
        if not isinstance(body, dict):
            return []

        errors = body.get("errors")
        if not isinstance(errors, list):
            return []

        return [cls.from_payload(entry) for entry in errors]

    @classmethod
    def list_from_response(cls, response: httpx.Response) -> list["GraphQLErrorDetail"]:
        """Parse the ``errors`` array of an HTTP response, if it has one."""
        try:
            body = response.json()
        except (ValueError, TypeError, AttributeError):
            # JSON decode errors, or a body that is not JSON at all
            return []

        return cls.list_from_body(body)

    def to_exception_message(self) -> str:
        """Convert the error entry to an exception message line."""
        text = self.message or "Unknown GraphQL error"

        if self.path:
            text += f" (path: {'.'.join(str(part) for part in self.path)})"

        if self.extensions and "code" in self.extensions:
            text += f" [{self.extensions['code']}]"

        return text
