"""Client configuration."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from freepbx_gql_client.auth.credentials import CredentialResolver
from freepbx_gql_client.errors.exceptions import ConstructionError

DEFAULT_RETRY = 5
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_TIMEOUT = 30.0

_TRUE_VALUES = frozenset(["1", "true", "yes", "on"])


@dataclass(frozen=True)
class ClientConfig:
    """Immutable settings for one FreePBX client instance.

    Validated on construction; any problem raises ConstructionError before a
    single request is made.
    """

    base_url: str
    client_id: str
    client_secret: str = field(repr=False)
    debug: bool = False
    retry: int = DEFAULT_RETRY  # Retries per call after the first attempt
    retry_delay: float = DEFAULT_RETRY_DELAY  # Initial backoff, seconds
    timeout: float = DEFAULT_TIMEOUT  # Per-request HTTP timeout, seconds

    def __post_init__(self) -> None:
        if not self.base_url:
            raise ConstructionError("Missing base url")
        if not self.client_id:
            raise ConstructionError("Missing client id")
        if not self.client_secret:
            raise ConstructionError("Missing client secret")
        if isinstance(self.retry, bool) or not isinstance(self.retry, int) or self.retry < 0:
            raise ConstructionError(f"retry must be a non-negative integer, got {self.retry!r}")
        if not _is_positive_number(self.retry_delay):
            raise ConstructionError(f"retry_delay must be a positive number of seconds, got {self.retry_delay!r}")
        if not _is_positive_number(self.timeout):
            raise ConstructionError(f"timeout must be a positive number of seconds, got {self.timeout!r}")

        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def oauth_endpoint(self) -> str:
        return f"{self.base_url}/admin/api/api/token"

    @property
    def gql_endpoint(self) -> str:
        return f"{self.base_url}/admin/api/api/gql"

    @classmethod
    def from_options(cls, base_url: str, config: Mapping[str, Any] | None) -> "ClientConfig":
        """Build a config from the constructor mapping.

        Args:
            base_url: FreePBX server root, e.g. ``https://pbx.example.com``
            config: ``{"client": {"id": ..., "secret": ...}, "debug": ...,
                "retry": ..., "retry_delay": ..., "timeout": ...}``

        Raises:
            ConstructionError: If the client section, id, or secret is
                missing, or an option is out of range.
        """
        config = config or {}

        client = config.get("client")
        if not client or not isinstance(client, Mapping):
            raise ConstructionError("Missing client configuration")
        if not client.get("id"):
            raise ConstructionError("Missing client id")
        if not client.get("secret"):
            raise ConstructionError("Missing client secret")

        return cls(
            base_url=base_url,
            client_id=client["id"],
            client_secret=client["secret"],
            debug=bool(config.get("debug", False)),
            retry=config.get("retry", DEFAULT_RETRY),
            retry_delay=config.get("retry_delay", DEFAULT_RETRY_DELAY),
            timeout=config.get("timeout", DEFAULT_TIMEOUT),
        )

    @classmethod
    def from_env(
        cls,
        base_url: str | None = None,
        *,
        resolver: CredentialResolver | None = None,
        **overrides: Any,
    ) -> "ClientConfig":
        """Build a config from the environment (and .env file).

        Reads ``FREEPBX_BASE_URL``, ``FREEPBX_CLIENT_ID``,
        ``FREEPBX_CLIENT_SECRET`` (or ``FREEPBX_CLIENT_SECRET_FILE``),
        ``FREEPBX_DEBUG``, ``FREEPBX_RETRY`` and ``FREEPBX_RETRY_DELAY``.
        Keyword overrides (``client_id``, ``debug``, ``retry``, ...) win over
        the environment.

        Raises:
            ConstructionError: If a required setting is missing or malformed.
        """
        resolver = resolver or CredentialResolver()

        base_url = resolver.resolve(value=base_url, env_var_name="FREEPBX_BASE_URL", required=True)
        client_id = resolver.resolve(value=overrides.pop("client_id", None), env_var_name="FREEPBX_CLIENT_ID", required=True)

        client_secret = resolver.resolve(value=overrides.pop("client_secret", None), env_var_name="FREEPBX_CLIENT_SECRET")
        if client_secret is None:
            client_secret = resolver.resolve_from_file(env_var_name="FREEPBX_CLIENT_SECRET_FILE")
        if client_secret is None:
            raise ConstructionError("Missing client secret (set FREEPBX_CLIENT_SECRET or FREEPBX_CLIENT_SECRET_FILE)")

        debug = overrides.pop("debug", None)
        if debug is None:
            debug = (resolver.resolve(env_var_name="FREEPBX_DEBUG", default="") or "").lower() in _TRUE_VALUES

        retry = overrides.pop("retry", None)
        if retry is None:
            retry = _parse_number(resolver.resolve(env_var_name="FREEPBX_RETRY"), int, "FREEPBX_RETRY", DEFAULT_RETRY)

        retry_delay = overrides.pop("retry_delay", None)
        if retry_delay is None:
            retry_delay = _parse_number(
                resolver.resolve(env_var_name="FREEPBX_RETRY_DELAY"), float, "FREEPBX_RETRY_DELAY", DEFAULT_RETRY_DELAY
            )

        return cls(
            base_url=base_url,
            client_id=client_id,
            client_secret=client_secret,
            debug=debug,
            retry=retry,
            retry_delay=retry_delay,
            **overrides,
        )


def _is_positive_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and value > 0


def _parse_number(raw: str | None, kind: type, name: str, default: Any) -> Any:
    if raw is None:
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConstructionError(f"{name} must be a {kind.__name__}, got {raw!r}") from None
