"""Environment-driven configuration for the API client.

Every setting is looked up as ``RECORD_IMPORT_<NAME>`` first and then
as the bare ``<NAME>``, so the same variables used by the service's
other tooling keep working.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from record_import_cli.exceptions import ConfigurationError

ENV_PREFIX = "RECORD_IMPORT_"
DEFAULT_USER_AGENT = "Record import CLI"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """Settings consumed by :class:`~record_import_cli.infra.api_client.HttpRecordImportApi`."""

    api_url: str
    username: str | None
    password: str | None
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and self.password is not None


def read_setting(
    name: str,
    environ: Mapping[str, str] | None = None,
    default: str | None = None,
) -> str | None:
    """Return the prefixed or bare environment value for *name*."""
    env = os.environ if environ is None else environ
    for key in (f"{ENV_PREFIX}{name}", name):
        value = env.get(key)
        if value:
            return value
    return default


def load_config(environ: Mapping[str, str] | None = None) -> ClientConfig:
    """Build a :class:`ClientConfig` from the environment.

    Raises
    ------
    ConfigurationError
        If ``API_URL`` is not set or ``API_TIMEOUT`` is not a number.
    """
    api_url = read_setting("API_URL", environ)
    if not api_url:
        raise ConfigurationError(
            "API URL is not configured.",
            hint=f"Set {ENV_PREFIX}API_URL (or API_URL) to the record import API address.",
        )

    raw_timeout = read_setting("API_TIMEOUT", environ)
    timeout = DEFAULT_TIMEOUT
    if raw_timeout is not None:
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid API timeout: {raw_timeout!r}",
                hint="API_TIMEOUT must be a number of seconds.",
            ) from exc

    return ClientConfig(
        api_url=api_url.rstrip("/"),
        username=read_setting("API_USERNAME", environ),
        password=read_setting("API_PASSWORD", environ),
        user_agent=read_setting("API_CLIENT_USER_AGENT", environ) or DEFAULT_USER_AGENT,
        timeout=timeout,
    )
