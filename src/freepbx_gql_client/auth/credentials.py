"""Resolve FreePBX API client credentials from several sources.

Resolution order (highest to lowest priority):
1. Explicitly provided value
2. Environment variable
3. .env file (python-dotenv, loaded into the environment)
4. Default value

Example:
    ```python
    from freepbx_gql_client.auth import CredentialResolver

    resolver = CredentialResolver()

    client_id = resolver.resolve(env_var_name="FREEPBX_CLIENT_ID", required=True)

    # Secret kept in a file, path taken from the environment
    client_secret = resolver.resolve_from_file(env_var_name="FREEPBX_CLIENT_SECRET_FILE")
    ```

Credential values are never logged; only their source is.
"""

import logging
import os
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv

from freepbx_gql_client.errors.exceptions import CredentialFileError, CredentialNotFoundError

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Resolve settings and secrets with priority ordering.

    Args:
        dotenv_path: Path to a .env file. If None, python-dotenv searches
            parent directories.
        load_dotenv: Whether to load the .env file at all (default: True).

    Example:
        ```python
        resolver = CredentialResolver(load_dotenv=False)
        base_url = resolver.resolve(env_var_name="FREEPBX_BASE_URL", default="http://localhost")
        ```
    """

    def __init__(self, dotenv_path: str | None = None, load_dotenv: bool = True):
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        """Load the .env file once (thread-safe)."""
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for credential resolution")
            except OSError as e:
                logger.warning(f"Failed to load .env file: {e}")
            # Attempted either way; never retried
            self._dotenv_loaded = True

    def resolve(
        self,
        *,
        value: str | None = None,
        env_var_name: str | None = None,
        default: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Resolve a setting from the first source that has it.

        Args:
            value: Explicit value; wins over every other source.
            env_var_name: Environment variable to check (includes .env values).
            default: Fallback when no other source has a value.
            required: Raise CredentialNotFoundError instead of returning None.

        Returns:
            Resolved value, or None if not found and not required.

        Raises:
            CredentialNotFoundError: If required and not found anywhere.
        """
        result = None
        source = None

        if value is not None:
            result = value
            source = "explicit parameter"
        elif env_var_name and os.environ.get(env_var_name):
            result = os.environ[env_var_name]
            source = f"environment variable '{env_var_name}'"
        elif default is not None:
            result = default
            source = "default value"

        if result is not None:
            logger.debug(f"Resolved credential from {source}: ***")

        if required and result is None:
            error_msg = "Required credential not found"
            if env_var_name:
                error_msg += f" (checked env var: {env_var_name})"
            raise CredentialNotFoundError(error_msg, env_var_name=env_var_name)

        return result

    def resolve_from_file(
        self,
        *,
        file_path: str | Path | None = None,
        env_var_name: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Read a secret from a file.

        The path may come directly or from an environment variable, and
        supports ``~`` and ``$VAR`` expansion. Surrounding whitespace is
        stripped from the file contents.

        Args:
            file_path: Path to the file holding the secret.
            env_var_name: Environment variable holding the path, used when
                file_path is None.
            required: Raise CredentialFileError instead of returning None.

        Returns:
            File contents, or None if unavailable and not required.

        Raises:
            CredentialFileError: If required and the file cannot be read.
        """
        path_to_use = None

        if file_path is not None:
            path_to_use = str(file_path)
        elif env_var_name:
            path_to_use = self.resolve(env_var_name=env_var_name)

        if path_to_use is None:
            if required:
                error_msg = "No file path provided for credential resolution"
                if env_var_name:
                    error_msg += f" (env var '{env_var_name}' not set)"
                raise CredentialFileError(error_msg)
            return None

        path_obj = Path(os.path.expanduser(os.path.expandvars(path_to_use)))

        try:
            content = path_obj.read_text().strip()
        except FileNotFoundError:
            error_msg = f"Credential file not found: {path_obj}"
            if required:
                raise CredentialFileError(error_msg) from None
            logger.debug(error_msg)
            return None
        except OSError as e:
            error_msg = f"Error reading credential file {path_obj}: {e}"
            if required:
                raise CredentialFileError(error_msg) from e
            logger.warning(error_msg)
            return None

        logger.debug(f"Resolved credential from file: {path_obj} (***)")
        return content
