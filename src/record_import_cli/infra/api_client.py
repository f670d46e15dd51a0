"""httpx-backed implementation of :class:`~record_import_cli.core.protocols.RecordImportApi`.

This module is the **only** place in the codebase that imports
``httpx``.  Every transport exception and non-2xx response is mapped
here to a typed :class:`~record_import_cli.exceptions.RecordImportError`
subclass — nothing raw escapes the infrastructure boundary.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, BinaryIO
from urllib.parse import quote

import httpx

from record_import_cli.config import ClientConfig
from record_import_cli.core.models import BlobContent, BlobPage
from record_import_cli.exceptions import ApiConnectionError, ApiError, RecordImportError

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class HttpRecordImportApi:
    """Concrete :class:`RecordImportApi` talking to the service over HTTP.

    Usage::

        with HttpRecordImportApi(load_config()) as api:
            api.query_profiles()

    When credentials are configured, the client authenticates lazily
    with ``POST /auth`` (HTTP Basic) and sends the returned ``Token``
    header as a bearer token.  An expired token (``401``) is renewed
    once per request.

    Parameters
    ----------
    config:
        Connection settings.
    transport:
        Optional ``httpx`` transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config: ClientConfig = config
        self._client: httpx.Client = httpx.Client(
            base_url=config.api_url,
            headers={"User-Agent": config.user_agent},
            timeout=config.timeout,
            transport=transport,
        )
        self._token: str | None = None

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> HttpRecordImportApi:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def query_profiles(self) -> list[dict[str, Any]]:
        return self._json(self._send("GET", "/profiles"))

    def get_profile(self, profile_id: str) -> dict[str, Any]:
        return self._json(self._send("GET", f"/profiles/{_segment(profile_id)}"))

    def modify_profile(self, profile_id: str, payload: Any) -> None:
        self._send("PUT", f"/profiles/{_segment(profile_id)}", json=payload)

    def delete_profile(self, profile_id: str) -> None:
        self._send("DELETE", f"/profiles/{_segment(profile_id)}")

    # ------------------------------------------------------------------
    # Blobs
    # ------------------------------------------------------------------

    def create_blob(
        self,
        profile: str,
        content_type: str,
        content: BinaryIO,
    ) -> str:
        """Upload *content*; the new id is the last ``Location`` segment."""
        response = self._send(
            "POST",
            "/blobs",
            content=_read_chunks(content),
            headers={"Content-Type": content_type, "Import-Profile": profile},
            retryable=False,
        )
        location = response.headers.get("Location", "").rstrip("/")
        blob_id = location.rsplit("/", 1)[-1]
        if not blob_id:
            raise RecordImportError(
                "The API accepted the blob but did not report its id.",
            )
        return blob_id

    def get_blob_metadata(self, blob_id: str) -> dict[str, Any]:
        return self._json(self._send("GET", f"/blobs/{_segment(blob_id)}"))

    def delete_blob(self, blob_id: str) -> None:
        self._send("DELETE", f"/blobs/{_segment(blob_id)}")

    @contextmanager
    def open_blob_content(self, blob_id: str) -> Iterator[BlobContent]:
        response = self._send(
            "GET",
            f"/blobs/{_segment(blob_id)}/content",
            stream=True,
        )
        try:
            raw_length = response.headers.get("Content-Length", "")
            yield BlobContent(
                content_type=response.headers.get("Content-Type", DEFAULT_CONTENT_TYPE),
                length=int(raw_length) if raw_length.isdigit() else None,
                chunks=_stream_chunks(response),
            )
        finally:
            response.close()

    def delete_blob_content(self, blob_id: str) -> None:
        self._send("DELETE", f"/blobs/{_segment(blob_id)}/content")

    def abort_blob(self, blob_id: str) -> None:
        self._send("POST", f"/blobs/{_segment(blob_id)}", json={"op": "abort"})

    def query_blobs(self, query: Mapping[str, Any]) -> Iterator[BlobPage]:
        """Yield pages until the service stops sending ``NextOffset``."""
        params = self.encode_query(query)
        offset: str | None = None
        while True:
            page_params = dict(params)
            if offset:
                page_params["offset"] = offset
            response = self._send("GET", "/blobs", params=page_params)
            yield BlobPage(blobs=tuple(self._json(response)))
            offset = response.headers.get("NextOffset")
            if not offset:
                return

    @staticmethod
    def encode_query(query: Mapping[str, Any]) -> dict[str, str]:
        """Flatten a blob query; time ranges become ``from,to``."""
        params: dict[str, str] = {}
        for name, value in query.items():
            if isinstance(value, (list, tuple)):
                params[name] = ",".join(str(part) for part in value)
            else:
                params[name] = str(value)
        return params

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def _authenticate(self) -> None:
        """Exchange Basic credentials for a bearer token."""
        try:
            response = self._client.post(
                "/auth",
                auth=httpx.BasicAuth(
                    self._config.username or "",
                    self._config.password or "",
                ),
            )
        except httpx.HTTPError as exc:
            raise _connection_error(self._config.api_url, exc) from exc

        if response.is_error:
            raise ApiError(
                response.status_code,
                hint="Check API_USERNAME and API_PASSWORD.",
            )

        token = response.headers.get("Token")
        if not token:
            raise RecordImportError(
                "Authentication succeeded but the API returned no token.",
            )
        self._token = token

    def _auth_headers(self) -> dict[str, str]:
        if self._token is None:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _send(
        self,
        method: str,
        url: str,
        *,
        stream: bool = False,
        retryable: bool = True,
        headers: Mapping[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request, renewing the token once on ``401``.

        Raises
        ------
        ApiError
            For any non-2xx response.
        ApiConnectionError
            When the request cannot be delivered.
        """
        if self._config.has_credentials and self._token is None:
            self._authenticate()

        response = self._dispatch(method, url, stream=stream, headers=headers, **kwargs)

        if (
            response.status_code == httpx.codes.UNAUTHORIZED
            and retryable
            and self._config.has_credentials
        ):
            response.close()
            self._token = None
            self._authenticate()
            response = self._dispatch(method, url, stream=stream, headers=headers, **kwargs)

        if response.is_error:
            response.close()
            raise ApiError(response.status_code)
        return response

    def _dispatch(
        self,
        method: str,
        url: str,
        *,
        stream: bool,
        headers: Mapping[str, str] | None,
        **kwargs: Any,
    ) -> httpx.Response:
        request = self._client.build_request(
            method,
            url,
            headers={**self._auth_headers(), **(headers or {})},
            **kwargs,
        )
        try:
            return self._client.send(request, stream=stream)
        except httpx.HTTPError as exc:
            raise _connection_error(self._config.api_url, exc) from exc

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise RecordImportError(
                f"The API returned a malformed response for {response.request.url.path}.",
            ) from exc


# ---------------------------------------------------------------------------
# Module helpers
# ---------------------------------------------------------------------------

def _segment(value: str) -> str:
    """Quote *value* for use as a single URL path segment."""
    return quote(value, safe="")


def _read_chunks(source: BinaryIO, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
    """Yield *source* in fixed-size chunks so uploads are streamed."""
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            return
        yield chunk


def _stream_chunks(response: httpx.Response) -> Iterator[bytes]:
    try:
        yield from response.iter_bytes()
    except httpx.HTTPError as exc:
        raise ApiConnectionError(
            f"Connection lost while reading blob content: {exc}",
        ) from exc


def _connection_error(api_url: str, exc: httpx.HTTPError) -> ApiConnectionError:
    return ApiConnectionError(
        f"Could not reach the record import API at {api_url}: {exc}",
        hint="Check API_URL and your network connection.",
    )
