"""Shared pytest fixtures and configuration for the record-import-cli test suite.

Guidelines
----------
* No network access in any test.
* httpx is exercised only through ``httpx.MockTransport``.
* Core tests must be pure — no side effects.
* Tests must not depend on the caller's environment variables.
"""

from __future__ import annotations

import pytest

from record_import_cli.config import ENV_PREFIX

_SETTINGS = ("API_URL", "API_USERNAME", "API_PASSWORD", "API_CLIENT_USER_AGENT", "API_TIMEOUT", "OUTPUT")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove connection settings inherited from the developer's shell."""
    for name in _SETTINGS:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"{ENV_PREFIX}{name}", raising=False)
