"""Error handling utilities for OAuth and GraphQL responses."""

from typing import Any

import httpx

from freepbx_gql_client.errors.exceptions import (
    GraphQLRequestError,
    GraphQLResponseError,
    UnauthorizedError,
)
from freepbx_gql_client.errors.models import GraphQLErrorDetail


def raise_for_status(response: httpx.Response) -> None:
    """Raise the appropriate exception for a non-2xx GraphQL response.

    A 401 maps to UnauthorizedError, which the retry policy treats as an
    expired token. Every other failure status maps to GraphQLRequestError.

    Args:
        response: HTTP response object

    Raises:
        GraphQLRequestError subclass based on status code
    """
    if response.is_success:
        return

    status_code = response.status_code
    exc_class = UnauthorizedError if status_code == 401 else GraphQLRequestError

    # Servers often still send a GraphQL error body alongside the status
    errors = GraphQLErrorDetail.list_from_response(response)

    if errors:
        message = f"HTTP {status_code}: " + "; ".join(error.to_exception_message() for error in errors)
    else:
        response_text = response.text[:200]
        message = f"HTTP {status_code}: {response_text}" if response_text else f"HTTP {status_code}"

    raise exc_class(
        message=message,
        status_code=status_code,
        response=response,
        errors=errors,
    )


def raise_for_graphql_errors(body: Any) -> dict[str, Any]:
    """Return the ``data`` member of a GraphQL response body.

    Args:
        body: Decoded JSON response body

    Returns:
        The ``data`` dict (empty when the server sent none)

    Raises:
        GraphQLResponseError: If the body carries a non-empty ``errors`` array
            or is not a JSON object.
    """
    if not isinstance(body, dict):
        raise GraphQLResponseError(f"Unexpected GraphQL response body: {body!r:.200}")

    data = body.get("data")
    errors = GraphQLErrorDetail.list_from_body(body)

    if errors:
        message = "; ".join(error.to_exception_message() for error in errors)
        raise GraphQLResponseError(
            message=message,
            errors=errors,
            data=data if isinstance(data, dict) else None,
        )

    return data if isinstance(data, dict) else {}
