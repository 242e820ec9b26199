"""Error taxonomy and GraphQL error parsing for the FreePBX client."""

from freepbx_gql_client.errors.exceptions import (
    AuthenticationError,
    ConstructionError,
    CredentialFileError,
    CredentialNotFoundError,
    FreepbxError,
    GraphQLRequestError,
    GraphQLResponseError,
    NetworkError,
    TransactionError,
    UnauthorizedError,
)
from freepbx_gql_client.errors.handler import raise_for_graphql_errors, raise_for_status
from freepbx_gql_client.errors.models import GraphQLErrorDetail

__all__ = [
    "AuthenticationError",
    "ConstructionError",
    "CredentialFileError",
    "CredentialNotFoundError",
    "FreepbxError",
    "GraphQLErrorDetail",
    "GraphQLRequestError",
    "GraphQLResponseError",
    "NetworkError",
    "TransactionError",
    "UnauthorizedError",
    "raise_for_graphql_errors",
    "raise_for_status",
]
