"""Tests for command routing and handlers (cli/app.py).

The API adapter is replaced by a ``MagicMock`` through the
``_open_api`` seam — no configuration, no network.  Coverage:

* Every profile and blob subcommand reaches the right API operation.
* Results go to stdout, status lines to stderr.
* Query flag conflicts are usage errors.
* readContent file/stdout paths and the binary-terminal guard.
* The ``cli()`` error boundary exit codes.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from record_import_cli.cli import app as app_module
from record_import_cli.cli import exit_codes
from record_import_cli.cli.app import cli, main
from record_import_cli.core.models import BlobContent, BlobPage
from record_import_cli.exceptions import (
    ApiConnectionError,
    ApiError,
    BinaryContentError,
    LocalFileError,
    ProfilePayloadError,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def api(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Route every command to a mocked API adapter."""
    fake = MagicMock()

    @contextmanager
    def _fake_open_api() -> Iterator[Any]:
        yield fake

    monkeypatch.setattr(app_module, "_open_api", _fake_open_api)
    return fake


def _content(data: bytes, content_type: str = "text/plain") -> Any:
    @contextmanager
    def _open(_blob_id: str) -> Iterator[BlobContent]:
        yield BlobContent(content_type=content_type, length=len(data), chunks=iter([data]))

    return _open


# ---------------------------------------------------------------------------
# Help routing
# ---------------------------------------------------------------------------

class TestHelp:
    @pytest.mark.parametrize("argv", [[], ["profiles"], ["blobs"]])
    def test_group_without_operation_prints_help(
        self, argv: list[str], capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(argv) == exit_codes.SUCCESS
        assert "usage:" in capsys.readouterr().out

    def test_query_help_lists_states(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["blobs", "query", "--help"])
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "TRANSFORMED" in out
        assert "YYYY-MM-DD" in out


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

class TestProfileCommands:
    @pytest.mark.parametrize("verb", ["modify", "create", "update"])
    def test_modify_from_file(
        self,
        verb: str,
        api: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        payload = tmp_path / "profile.json"
        payload.write_text('{"auth": {"groups": ["kvp"]}}', encoding="utf-8")

        assert main(["profiles", verb, "foo", str(payload)]) == exit_codes.SUCCESS
        api.modify_profile.assert_called_once_with("foo", {"auth": {"groups": ["kvp"]}})
        assert "Created/updated profile" in capsys.readouterr().err

    def test_modify_from_stdin(
        self, api: MagicMock, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("sys.stdin", _TextStdin('{"a": 1}'))
        assert main(["profiles", "modify", "foo"]) == exit_codes.SUCCESS
        api.modify_profile.assert_called_once_with("foo", {"a": 1})

    def test_modify_missing_file(self, api: MagicMock, tmp_path: Path) -> None:
        with pytest.raises(LocalFileError, match="Cannot read file"):
            main(["profiles", "modify", "foo", str(tmp_path / "absent.json")])
        api.modify_profile.assert_not_called()

    def test_modify_invalid_json(self, api: MagicMock, tmp_path: Path) -> None:
        payload = tmp_path / "profile.json"
        payload.write_text("{", encoding="utf-8")
        with pytest.raises(ProfilePayloadError):
            main(["profiles", "modify", "foo", str(payload)])

    def test_query_prints_json(
        self, api: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        api.query_profiles.return_value = [{"id": "foo"}, {"id": "bar"}]
        assert main(["profiles", "query"]) == exit_codes.SUCCESS
        assert json.loads(capsys.readouterr().out) == [{"id": "foo"}, {"id": "bar"}]

    def test_query_table_output(
        self, api: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        api.query_profiles.return_value = [{"id": "foo", "auth": {"groups": []}}]
        assert main(["-o", "table", "profiles", "query"]) == exit_codes.SUCCESS
        out = capsys.readouterr().out
        assert "foo" in out
        assert "auth" not in out

    def test_read(self, api: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        api.get_profile.return_value = {"id": "foo"}
        assert main(["profiles", "read", "foo"]) == exit_codes.SUCCESS
        assert json.loads(capsys.readouterr().out) == {"id": "foo"}

    def test_delete(self, api: MagicMock, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["profiles", "delete", "foo"]) == exit_codes.SUCCESS
        api.delete_profile.assert_called_once_with("foo")
        assert "Deleted profile" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Blobs
# ---------------------------------------------------------------------------

class TestBlobCommands:
    def test_create_from_file(
        self,
        api: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        source = tmp_path / "records.csv"
        source.write_bytes(b"a,b\n")
        api.create_blob.return_value = "abc-123"

        code = main(["blobs", "create", str(source), "-p", "foo", "-t", "text/csv"])
        assert code == exit_codes.SUCCESS
        profile, content_type, _content_arg = api.create_blob.call_args.args
        assert (profile, content_type) == ("foo", "text/csv")
        assert "abc-123" in capsys.readouterr().err

    def test_create_requires_profile_and_type(self, api: MagicMock) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["blobs", "create", "file.csv"])
        assert exc_info.value.code == 2
        api.create_blob.assert_not_called()

    def test_create_missing_file(self, api: MagicMock, tmp_path: Path) -> None:
        with pytest.raises(LocalFileError):
            main(["blobs", "create", str(tmp_path / "nope"), "-p", "foo", "-t", "text/csv"])

    def test_read_localises_timestamps(
        self, api: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        api.get_blob_metadata.return_value = {"id": "1", "creationTime": "garbage"}
        assert main(["blobs", "read", "1"]) == exit_codes.SUCCESS
        assert json.loads(capsys.readouterr().out) == {"id": "1", "creationTime": "garbage"}

    @pytest.mark.parametrize(
        ("verb", "api_method", "message"),
        [
            ("delete", "delete_blob", "Deleted blob"),
            ("deleteContent", "delete_blob_content", "Deleted content for blob"),
            ("abort", "abort_blob", "Aborted processing of blob"),
        ],
    )
    def test_simple_blob_commands(
        self,
        verb: str,
        api_method: str,
        message: str,
        api: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["blobs", verb, "1"]) == exit_codes.SUCCESS
        getattr(api, api_method).assert_called_once_with("1")
        assert message in capsys.readouterr().err

    def test_markup_in_id_is_printed_literally(
        self, api: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(["blobs", "delete", "a[/x]b"]) == exit_codes.SUCCESS
        api.delete_blob.assert_called_once_with("a[/x]b")
        assert "a[/x]b" in capsys.readouterr().err


class TestBlobQueryCommand:
    def test_builds_query_and_prints_each_page(
        self, api: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        api.query_blobs.return_value = iter(
            [BlobPage(blobs=({"id": "1"},)), BlobPage(blobs=({"id": "2"},))],
        )
        code = main(["blobs", "query", "-s", "transformed", "-a", "2022-05-12", "-b", "2022-05-13"])
        assert code == exit_codes.SUCCESS
        api.query_blobs.assert_called_once_with(
            {"state": "transformed", "creationTime": ["2022-05-12", "2022-05-13"]},
        )
        captured = capsys.readouterr()
        assert '"id": "1"' in captured.out
        assert '"id": "2"' in captured.out
        assert "Query:" in captured.err

    def test_long_option_names(self, api: MagicMock) -> None:
        api.query_blobs.return_value = iter([])
        main(["blobs", "query", "--modifiedDay", "2022-05-12", "--state", "nope"])
        api.query_blobs.assert_called_once_with(
            {"modificationTime": ["2022-05-12T00:00:00+01:00", "2022-05-12T23:59:59+01:00"]},
        )

    @pytest.mark.parametrize(
        "argv",
        [
            ["-d", "2022-05-12", "-a", "2022-05-01"],
            ["-d", "2022-05-12", "-b", "2022-05-30"],
            ["-D", "2022-05-12", "-A", "2022-05-01"],
            ["-D", "2022-05-12", "-B", "2022-05-30"],
        ],
    )
    def test_day_conflicts_with_range(
        self,
        argv: list[str],
        api: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["blobs", "query", *argv])
        assert exc_info.value.code == 2
        assert "not allowed with" in capsys.readouterr().err
        api.query_blobs.assert_not_called()

    def test_created_day_with_modified_range_is_allowed(self, api: MagicMock) -> None:
        api.query_blobs.return_value = iter([])
        assert main(["blobs", "query", "-d", "2022-05-12", "-A", "2022-05-01"]) == (
            exit_codes.SUCCESS
        )


class TestReadContentCommand:
    def test_writes_file(
        self,
        api: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        api.open_blob_content.side_effect = _content(b"record data")
        target = tmp_path / "out.txt"

        assert main(["blobs", "readContent", "1", str(target)]) == exit_codes.SUCCESS
        assert target.read_bytes() == b"record data"
        assert "Wrote blob content to file" in capsys.readouterr().err

    def test_broken_stream_removes_partial_file(
        self, api: MagicMock, tmp_path: Path,
    ) -> None:
        def _chunks() -> Iterator[bytes]:
            yield b"partial"
            raise ApiConnectionError("Connection lost while reading blob content")

        @contextmanager
        def _open(_blob_id: str) -> Iterator[BlobContent]:
            yield BlobContent(content_type="text/plain", length=100, chunks=_chunks())

        api.open_blob_content.side_effect = _open
        target = tmp_path / "out.txt"

        with pytest.raises(ApiConnectionError):
            main(["blobs", "readContent", "1", str(target)])
        assert not target.exists()

    def test_prints_text_to_stdout(
        self, api: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        api.open_blob_content.side_effect = _content(b"hello")
        assert main(["blobs", "readContent", "1"]) == exit_codes.SUCCESS
        assert capsys.readouterr().out == "hello"

    def test_refuses_binary_on_terminal(self, api: MagicMock) -> None:
        api.open_blob_content.side_effect = _content(b"\x00\x01", "application/octet-stream")
        with patch("sys.stdout.isatty", return_value=True):
            with pytest.raises(BinaryContentError, match="seems to be binary"):
                main(["blobs", "readContent", "1"])

    def test_binary_allowed_when_redirected(
        self, api: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        api.open_blob_content.side_effect = _content(b"\x01\x02", "application/octet-stream")
        with patch("sys.stdout.isatty", return_value=False):
            assert main(["blobs", "readContent", "1"]) == exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Error boundary
# ---------------------------------------------------------------------------

class TestErrorBoundary:
    def test_api_error_exits_general_error(
        self, api: MagicMock, capsys: pytest.CaptureFixture[str],
    ) -> None:
        api.get_profile.side_effect = ApiError(404)
        with patch("sys.argv", ["record-import-cli", "profiles", "read", "foo"]):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.GENERAL_ERROR
        assert "API call failed: Not Found (404)" in capsys.readouterr().err

    def test_hint_is_rendered(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.dict("os.environ", {}, clear=True):
            with patch("sys.argv", ["record-import-cli", "profiles", "query"]):
                with pytest.raises(SystemExit) as exc_info:
                    cli()
        assert exc_info.value.code == exit_codes.GENERAL_ERROR
        err = capsys.readouterr().err
        assert "API URL is not configured" in err
        assert "RECORD_IMPORT_API_URL" in err

    def test_markup_in_error_message_is_not_interpreted(
        self, api: MagicMock, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        missing = tmp_path / "[/x].json"
        with patch("sys.argv", ["record-import-cli", "profiles", "modify", "foo", str(missing)]):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.GENERAL_ERROR
        assert "Cannot read file" in capsys.readouterr().err

    def test_keyboard_interrupt(self, api: MagicMock) -> None:
        api.query_profiles.side_effect = KeyboardInterrupt
        with patch("sys.argv", ["record-import-cli", "profiles", "query"]):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.KEYBOARD_INTERRUPT

    def test_unexpected_error(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str],
    ) -> None:
        def _boom(_args: object) -> int:
            raise RuntimeError("kaput")

        monkeypatch.setattr(app_module, "_handle_doctor", _boom)
        with patch("sys.argv", ["record-import-cli", "doctor"]):
            with pytest.raises(SystemExit) as exc_info:
                cli()
        assert exc_info.value.code == exit_codes.UNEXPECTED_ERROR
        assert "kaput" in capsys.readouterr().err


class _TextStdin:
    """Stand-in for ``sys.stdin`` holding fixed text."""

    def __init__(self, text: str) -> None:
        self._text = text

    def read(self) -> str:
        return self._text
