"""Core profile service — create/read/update/delete of import profiles.

The service receives profile payloads as raw text (read from a file or
stdin by the CLI layer), decodes them, and delegates to the injected
:class:`~record_import_cli.core.protocols.RecordImportApi`.
"""

from __future__ import annotations

import json
from typing import Any

from record_import_cli.core.service_base import ApiService
from record_import_cli.exceptions import ProfilePayloadError


class ProfileService(ApiService):
    """Stateless service for profile operations."""

    # ------------------------------------------------------------------
    # Payload decoding (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def parse_payload(text: str) -> Any:
        """Decode a JSON profile payload.

        Raises
        ------
        ProfilePayloadError
            If *text* is empty or not valid JSON.
        """
        if not text.strip():
            raise ProfilePayloadError(
                "Profile payload is empty.",
                hint="Pass a JSON file or pipe the profile document to stdin.",
            )
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ProfilePayloadError(
                f"Profile payload is not valid JSON: {exc.msg} "
                f"(line {exc.lineno}, column {exc.colno})",
            ) from exc

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def modify(self, profile_id: str, payload_text: str) -> None:
        """Create or update *profile_id* from a JSON document."""
        payload = self.parse_payload(payload_text)
        self._call(self._api.modify_profile, profile_id, payload)

    def query(self) -> list[dict[str, Any]]:
        return self._call(self._api.query_profiles)

    def read(self, profile_id: str) -> dict[str, Any]:
        return self._call(self._api.get_profile, profile_id)

    def delete(self, profile_id: str) -> None:
        self._call(self._api.delete_profile, profile_id)
