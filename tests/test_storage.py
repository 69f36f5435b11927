"""Tests for storage backends: local filesystem and Dropbox."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests
from dropbox.exceptions import ApiError, AuthError, HttpError
from dropbox.files import DeletedMetadata, FileMetadata, FolderMetadata, WriteMode

from inbox_relay.config.models import StorageConfig
from inbox_relay.errors import AuthenticationError, ConfigurationError, TransportError
from inbox_relay.storage import create_storage
from inbox_relay.storage.dropbox_storage import DropboxStorage
from inbox_relay.storage.local import LocalStorage
from inbox_relay.storage.models import join_path, split_path


# ── path helpers ────────────────────────────────────────────────────


class TestPathHelpers:
    def test_join(self):
        assert join_path("/Converted", "a.pdf") == "/Converted/a.pdf"
        assert join_path("/Converted/", "a.pdf") == "/Converted/a.pdf"
        assert join_path("", "Inbox") == "/Inbox"

    def test_split(self):
        assert split_path("/Converted/a.pdf") == ("/Converted", "a.pdf")
        assert split_path("/Inbox") == ("", "Inbox")
        assert split_path("/Inbox/") == ("", "Inbox")


# ── LocalStorage ────────────────────────────────────────────────────


@pytest.fixture
def local(tmp_path):
    return LocalStorage(tmp_path / "root")


class TestLocalStorage:
    async def test_connect_creates_root(self, local, tmp_path):
        await local.connect()
        assert (tmp_path / "root").is_dir()

    async def test_list_is_sorted_and_typed(self, local, tmp_path):
        await local.connect()
        root = tmp_path / "root"
        (root / "inbox").mkdir()
        (root / "inbox" / "b.docx").write_bytes(b"b")
        (root / "inbox" / "a.docx").write_bytes(b"a")
        (root / "inbox" / "sub").mkdir()

        entries = await local.list_folder("/inbox")

        assert [e.name for e in entries] == ["a.docx", "b.docx", "sub"]
        assert entries[0].path == "/inbox/a.docx"
        assert entries[0].is_file and not entries[0].is_folder
        assert entries[2].is_folder

    async def test_upload_download_roundtrip(self, local):
        await local.connect()
        await local.create_folder("/out")
        await local.upload("/out/x.pdf", b"data")
        assert await local.download("/out/x.pdf") == b"data"

    async def test_upload_without_overwrite_rejects_existing(self, local):
        await local.connect()
        await local.upload("/x.pdf", b"one")
        with pytest.raises(TransportError):
            await local.upload("/x.pdf", b"two", overwrite=False)

    async def test_move_refuses_existing_destination(self, local):
        await local.connect()
        await local.upload("/a.txt", b"a")
        await local.upload("/b.txt", b"b")
        with pytest.raises(TransportError, match="move"):
            await local.move("/a.txt", "/b.txt")

    async def test_delete_folder_is_recursive(self, local, tmp_path):
        await local.connect()
        await local.create_folder("/out/report")
        await local.upload("/out/report/report0.png", b"0")

        await local.delete("/out/report")

        assert not (tmp_path / "root" / "out" / "report").exists()

    async def test_missing_file_is_transport_error(self, local):
        await local.connect()
        with pytest.raises(TransportError) as exc_info:
            await local.download("/nope.docx")
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    async def test_rejects_paths_outside_root(self, local):
        with pytest.raises(ValueError):
            await local.download("/../../etc/passwd")

    async def test_ensure_folder_is_idempotent(self, local):
        await local.connect()
        assert await local.ensure_folder("/Converted") is True
        assert await local.ensure_folder("/Converted") is False


# ── DropboxStorage ─────────────────────────────────────────────────


def _file(name, folder="/To Convert"):
    entry = MagicMock(spec=FileMetadata)
    entry.name = name
    entry.path_display = f"{folder}/{name}"
    return entry


def _folder(name, folder="/To Convert"):
    entry = MagicMock(spec=FolderMetadata)
    entry.name = name
    entry.path_display = f"{folder}/{name}"
    return entry


def _deleted(name):
    entry = MagicMock(spec=DeletedMetadata)
    entry.name = name
    entry.path_display = f"/To Convert/{name}"
    return entry


@pytest.fixture
def sdk():
    return MagicMock()


@pytest.fixture
def dbx(sdk):
    storage = DropboxStorage(access_token="tok")
    storage._client = sdk
    return storage


class TestDropboxStorage:
    def test_requires_some_token(self):
        with pytest.raises(ValueError):
            DropboxStorage(access_token="")

    async def test_connect_returns_display_name(self, dbx, sdk):
        sdk.users_get_current_account.return_value = SimpleNamespace(
            name=SimpleNamespace(display_name="Pat Doe")
        )
        assert await dbx.connect() == "Pat Doe"

    async def test_connect_auth_error(self, dbx, sdk):
        sdk.users_get_current_account.side_effect = AuthError("req-1", "invalid_access_token")
        with pytest.raises(AuthenticationError):
            await dbx.connect()

    async def test_list_folder_paginates(self, dbx, sdk):
        sdk.files_list_folder.return_value = SimpleNamespace(
            entries=[_file("a.docx"), _folder("sub")], has_more=True, cursor="c1"
        )
        sdk.files_list_folder_continue.return_value = SimpleNamespace(
            entries=[_file("b.gif"), _deleted("gone.txt")], has_more=False, cursor="c2"
        )

        entries = await dbx.list_folder("/To Convert")

        sdk.files_list_folder.assert_called_once_with("/To Convert")
        sdk.files_list_folder_continue.assert_called_once_with("c1")
        assert [e.name for e in entries] == ["a.docx", "sub", "b.gif", "gone.txt"]
        assert [e.is_file for e in entries] == [True, False, True, False]
        assert entries[1].is_folder
        assert not entries[3].is_folder

    async def test_root_listed_as_empty_path(self, dbx, sdk):
        sdk.files_list_folder.return_value = SimpleNamespace(
            entries=[], has_more=False, cursor=""
        )
        await dbx.list_folder("/")
        sdk.files_list_folder.assert_called_once_with("")

    async def test_download_returns_content(self, dbx, sdk):
        response = MagicMock(content=b"bytes")
        sdk.files_download.return_value = (MagicMock(), response)

        assert await dbx.download("/To Convert/a.docx") == b"bytes"
        response.close.assert_called_once()

    async def test_upload_overwrite_mode(self, dbx, sdk):
        await dbx.upload("/Converted/a.pdf", b"pdf")
        sdk.files_upload.assert_called_once_with(
            b"pdf", "/Converted/a.pdf", mode=WriteMode.overwrite
        )

    async def test_move_delete_create(self, dbx, sdk):
        await dbx.move("/a", "/b")
        await dbx.delete("/b")
        await dbx.create_folder("/c")
        sdk.files_move_v2.assert_called_once_with("/a", "/b")
        sdk.files_delete_v2.assert_called_once_with("/b")
        sdk.files_create_folder_v2.assert_called_once_with("/c")

    def test_names_compare_case_insensitively(self, dbx):
        assert dbx.same_name("Report.PDF", "report.pdf")
        assert not dbx.same_name("report.pdf", "report.docx")

    async def test_delete_if_exists_matches_other_case(self, dbx, sdk):
        sdk.files_list_folder.return_value = SimpleNamespace(
            entries=[_file("Report.docx", "/Can't Convert")], has_more=False, cursor=""
        )

        assert await dbx.delete_if_exists("/Can't Convert", "report.docx") is True
        sdk.files_delete_v2.assert_called_once_with("/Can't Convert/Report.docx")

    async def test_api_error_is_not_retryable(self, dbx, sdk):
        sdk.files_delete_v2.side_effect = ApiError("req-2", "path_lookup", None, None)
        with pytest.raises(TransportError) as exc_info:
            await dbx.delete("/missing")
        assert exc_info.value.service == "dropbox"
        assert exc_info.value.operation == "delete"
        assert not exc_info.value.retryable

    async def test_server_error_is_retryable(self, dbx, sdk):
        sdk.files_upload.side_effect = HttpError("req-3", 503, "unavailable")
        with pytest.raises(TransportError) as exc_info:
            await dbx.upload("/a.pdf", b"x")
        assert exc_info.value.retryable

    async def test_client_http_error_is_not_retryable(self, dbx, sdk):
        sdk.files_upload.side_effect = HttpError("req-4", 400, "bad request")
        with pytest.raises(TransportError) as exc_info:
            await dbx.upload("/a.pdf", b"x")
        assert not exc_info.value.retryable

    async def test_network_error_is_transport_error(self, dbx, sdk):
        sdk.files_download.side_effect = requests.exceptions.ConnectionError("down")
        with pytest.raises(TransportError) as exc_info:
            await dbx.download("/a.docx")
        assert exc_info.value.retryable


# ── create_storage ─────────────────────────────────────────────────


class TestCreateStorage:
    def test_local(self, tmp_path):
        storage = create_storage(StorageConfig(provider="local", local_root=str(tmp_path)))
        assert isinstance(storage, LocalStorage)

    def test_dropbox_from_env(self, monkeypatch):
        monkeypatch.setenv("DROPBOX_ACCESS_TOKEN", "env-token")
        storage = create_storage(StorageConfig())
        assert isinstance(storage, DropboxStorage)

    def test_dropbox_without_token_raises(self, monkeypatch):
        monkeypatch.delenv("DROPBOX_ACCESS_TOKEN", raising=False)
        with pytest.raises(ConfigurationError):
            create_storage(StorageConfig())

    def test_refresh_token_does_not_need_access_token(self, monkeypatch):
        monkeypatch.delenv("DROPBOX_ACCESS_TOKEN", raising=False)
        storage = create_storage(StorageConfig(refresh_token="refresh"))
        assert isinstance(storage, DropboxStorage)
