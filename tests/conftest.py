"""Shared test fixtures for inbox-relay."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from inbox_relay.config.models import FolderConfig, PollConfig, RelayConfig
from inbox_relay.conversion.client import ZamzarClient
from inbox_relay.conversion.models import ArtifactRef, ConversionJob, JobStatus
from inbox_relay.errors import TransportError
from inbox_relay.storage.base import StorageProvider
from inbox_relay.storage.models import FolderEntry, join_path, split_path


class MemoryStorage(StorageProvider):
    """In-memory StorageProvider that records every mutating call.

    Listing order is insertion order, like a remote listing.
    """

    name = "memory"

    def __init__(self, files: dict[str, bytes] | None = None, folders: list[str] | None = None):
        self.files: dict[str, bytes] = {}
        self.folders: list[str] = [""]
        self.calls: list[tuple] = []
        self.fail_on: dict[str | tuple[str, str], Exception] = {}
        for folder in folders or []:
            self.folders.append(folder)
        for path, data in (files or {}).items():
            self.files[path] = data

    def _maybe_fail(self, operation: str, path: str = "") -> None:
        """Raise for keys "operation" (every call) or (operation, path) (one path)."""
        for key in (operation, (operation, path)):
            if key in self.fail_on:
                raise TransportError(self.name, operation, self.fail_on[key])

    def _exists(self, path: str) -> bool:
        return path in self.files or path in self.folders

    async def connect(self) -> str:
        return "Test User"

    async def list_folder(self, path: str) -> list[FolderEntry]:
        self._maybe_fail("list_folder", path)
        path = path.rstrip("/")
        if path not in self.folders:
            raise TransportError(self.name, "list_folder", FileNotFoundError(path))
        entries = []
        for folder in self.folders:
            if folder and split_path(folder)[0] == path:
                entries.append(FolderEntry(name=split_path(folder)[1], path=folder, is_folder=True))
        for file_path in self.files:
            if split_path(file_path)[0] == path:
                entries.append(FolderEntry(name=split_path(file_path)[1], path=file_path, is_file=True))
        return entries

    async def download(self, path: str) -> bytes:
        self._maybe_fail("download", path)
        self.calls.append(("download", path))
        if path not in self.files:
            raise TransportError(self.name, "download", FileNotFoundError(path))
        return self.files[path]

    async def upload(self, path: str, data: bytes, overwrite: bool = True) -> None:
        self._maybe_fail("upload", path)
        self.calls.append(("upload", path))
        self.files[path] = data

    async def move(self, source: str, destination: str) -> None:
        self._maybe_fail("move", source)
        self.calls.append(("move", source, destination))
        if self._exists(destination):
            raise TransportError(self.name, "move", FileExistsError(destination))
        self.files[destination] = self.files.pop(source)

    async def delete(self, path: str) -> None:
        self._maybe_fail("delete", path)
        self.calls.append(("delete", path))
        if path in self.files:
            del self.files[path]
            return
        if path not in self.folders:
            raise TransportError(self.name, "delete", FileNotFoundError(path))
        prefix = path + "/"
        self.folders = [f for f in self.folders if f != path and not f.startswith(prefix)]
        self.files = {p: d for p, d in self.files.items() if not p.startswith(prefix)}

    async def create_folder(self, path: str) -> None:
        self._maybe_fail("create_folder", path)
        self.calls.append(("create_folder", path))
        if self._exists(path):
            raise TransportError(self.name, "create_folder", FileExistsError(path))
        self.folders.append(path)

    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] != "download"]


RELAY_FOLDERS = ["/To Convert", "/Converted", "/Can't Convert"]


@pytest.fixture
def folders():
    return FolderConfig()


@pytest.fixture
def storage():
    return MemoryStorage(folders=list(RELAY_FOLDERS))


@pytest.fixture
def sample_config():
    return RelayConfig(
        conversions={"docx": "pdf", "pdf": "pdf", "gif": "png", "tar.gz": "zip"},
        conversion={"poll": PollConfig(initial_delay=0, max_delay=0, max_wait=60)},
        idle_interval=0,
    )


def make_job(job_id=42, status=JobStatus.successful, artifact_ids=(), ext="pdf"):
    return ConversionJob(
        job_id=job_id,
        status=status,
        raw_status=status.value,
        artifacts=[ArtifactRef(artifact_id=a, target_extension=ext) for a in artifact_ids],
    )


@pytest.fixture
def mock_client():
    """ZamzarClient double whose job succeeds with one pdf artifact."""
    client = MagicMock(spec=ZamzarClient)
    client.list_targets = AsyncMock(return_value=["pdf", "txt", "png"])
    client.create_job = AsyncMock(return_value=make_job(status=JobStatus.queued))
    client.get_job = AsyncMock(return_value=make_job(artifact_ids=(7,)))
    client.cancel_job = AsyncMock(return_value=None)
    client.download_file = AsyncMock(return_value=b"%PDF-converted")
    return client
