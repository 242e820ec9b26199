"""Authentication components for the FreePBX client.

- Multi-source credential resolution (value → env → .env → default)
- OAuth2 client-credentials exchange with a cached bearer token

Example:
    ```python
    from freepbx_gql_client.auth import CredentialResolver

    resolver = CredentialResolver()
    client_id = resolver.resolve(env_var_name="FREEPBX_CLIENT_ID", required=True)
    ```
"""

from freepbx_gql_client.auth.credentials import CredentialResolver
from freepbx_gql_client.auth.oauth import ABSENT, Absent, CredentialManager, TokenState, Valid

__all__ = [
    "ABSENT",
    "Absent",
    "CredentialManager",
    "CredentialResolver",
    "TokenState",
    "Valid",
]
