"""Configuration models for the SearchRequestClient."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, TypeVar

from .errors import ConfigurationError
from .types import Credentials

_T = TypeVar("_T")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


def _parse_bypass(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Normalize a comma-separated string or iterable into bypass entries."""

    if value is None:
        return ()
    entries = value.split(",") if isinstance(value, str) else value
    return tuple(entry.strip() for entry in entries if entry and entry.strip())


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"cannot interpret {value!r} as a boolean")


def _optional(
    settings: Mapping[str, Any], key: str, convert: Callable[[Any], _T]
) -> _T | None:
    """Fetch ``key`` from settings, treating missing and blank as unset."""

    value = settings.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return convert(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"invalid value for {key!r}: {value!r}") from exc


@dataclass(frozen=True)
class SearchClientConfig:
    """Connection settings for one SearchRequestClient.

    Captured once at client construction and never mutated. Signing
    credentials are only checked for completeness when a request is about to
    be signed.
    """

    hostname: str | None = None
    port: int | None = None
    api_key: str | None = field(default=None, repr=False)
    signing: bool = False
    signing_key_id: str | None = None
    signing_secret_key: str | None = field(default=None, repr=False)
    region: str | None = None
    session_token: str | None = field(default=None, repr=False)
    connect_timeout_seconds: float | None = None
    proxy_host: str | None = None
    proxy_port: int | None = None
    proxy_bypass: tuple[str, ...] = ()
    user_agent: str | None = None
    verify_tls: bool = True

    def __post_init__(self) -> None:
        if self.port is not None and not 0 < self.port < 65536:
            raise ConfigurationError("port must be between 1 and 65535")
        if (
            self.connect_timeout_seconds is not None
            and self.connect_timeout_seconds < 0
        ):
            raise ConfigurationError("connect_timeout_seconds must be >= 0")
        if self.proxy_port is not None:
            if not self.proxy_host:
                raise ConfigurationError("proxy_port requires proxy_host")
            if not 0 < self.proxy_port < 65536:
                raise ConfigurationError(
                    "proxy_port must be between 1 and 65535"
                )

        # Accept "a, b" strings as well as iterables.
        object.__setattr__(
            self, "proxy_bypass", _parse_bypass(self.proxy_bypass)
        )

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> SearchClientConfig:
        """Build a config from the host application's plugin settings.

        Args:
            settings: Key/value record using the plugin setting names
                (``hostname``, ``port``, ``apikey``, ``signing``,
                ``signingkeyid``, ``signingsecretkey``, ``region``,
                ``connecttimeout``, ``proxyhost``, ``proxyport``,
                ``proxybypass``). Unknown keys are ignored.

        Raises:
            ConfigurationError: If a value cannot be coerced.
        """

        signing = _optional(settings, "signing", _parse_bool)
        timeout = _optional(settings, "connecttimeout", float)
        proxy_host = _optional(settings, "proxyhost", str)
        # A port of 0 means unset; the port is meaningless without a host.
        proxy_port = _optional(settings, "proxyport", int) or None
        return cls(
            hostname=_optional(settings, "hostname", str),
            port=_optional(settings, "port", int),
            api_key=_optional(settings, "apikey", str),
            signing=bool(signing),
            signing_key_id=_optional(settings, "signingkeyid", str),
            signing_secret_key=_optional(settings, "signingsecretkey", str),
            region=_optional(settings, "region", str),
            session_token=_optional(settings, "sessiontoken", str),
            connect_timeout_seconds=timeout or None,
            proxy_host=proxy_host,
            proxy_port=proxy_port if proxy_host else None,
            proxy_bypass=_parse_bypass(settings.get("proxybypass")),
        )

    def base_url(self) -> str:
        """Return ``<hostname>:<port>`` for the configured server.

        Raises:
            ConfigurationError: If hostname or port is not configured.
        """

        if not self.hostname or not self.port:
            raise ConfigurationError("hostname and port must be configured")
        return f"{self.hostname.rstrip('/')}:{self.port}"

    def credentials(self) -> Credentials:
        """Return signing credentials.

        Raises:
            ConfigurationError: If key id, secret key or region is missing.
        """

        if not (self.signing_key_id and self.signing_secret_key and self.region):
            raise ConfigurationError(
                "signing requires signing_key_id, signing_secret_key "
                "and region"
            )
        return Credentials(
            key_id=self.signing_key_id,
            secret_key=self.signing_secret_key,
            session_token=self.session_token,
        )
