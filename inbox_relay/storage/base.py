"""Abstract remote storage interface for inbox-relay."""

import logging
from abc import ABC, abstractmethod

from inbox_relay.storage.models import FolderEntry, join_path, split_path

logger = logging.getLogger(__name__)


class StorageProvider(ABC):
    """Abstract base class for remote storage backends.

    Paths are absolute, '/'-separated, and the root folder is "" or "/".
    Implementations wrap backend failures in TransportError.
    """

    name: str = "storage"

    @abstractmethod
    async def connect(self) -> str:
        """Verify the session and return the account display name."""
        ...

    @abstractmethod
    async def list_folder(self, path: str) -> list[FolderEntry]:
        """List the entries of a folder in the backend's native order."""
        ...

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Return the full content of a file."""
        ...

    @abstractmethod
    async def upload(self, path: str, data: bytes, overwrite: bool = True) -> None:
        """Write data to a file path."""
        ...

    @abstractmethod
    async def move(self, source: str, destination: str) -> None:
        """Move a file or folder."""
        ...

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete a file or folder (folders recursively)."""
        ...

    @abstractmethod
    async def create_folder(self, path: str) -> None:
        """Create a folder."""
        ...

    # ------------------------------------------------------------------
    # Check-then-act helpers
    # ------------------------------------------------------------------

    def same_name(self, a: str, b: str) -> bool:
        """True if two entry names address the same entry on this backend."""
        return a == b

    async def exists(self, folder: str, name: str) -> bool:
        """Return True if folder contains an entry called name."""
        entries = await self.list_folder(folder)
        return any(self.same_name(e.name, name) for e in entries)

    async def delete_if_exists(self, folder: str, name: str) -> bool:
        """Delete folder/name when present. Returns True if something was deleted."""
        entries = await self.list_folder(folder)
        for entry in entries:
            if not self.same_name(entry.name, name):
                continue
            kind = "Folder" if entry.is_folder else "File"
            logger.info(
                "%s %s already exists in '%s' and will be overwritten", kind, entry.name, folder
            )
            await self.delete(join_path(folder, entry.name))
            return True
        return False

    async def ensure_folder(self, path: str) -> bool:
        """Create the folder at path unless its parent already lists it.

        Returns True if the folder was created.
        """
        parent, name = split_path(path)
        if await self.exists(parent, name):
            return False
        await self.create_folder(path)
        logger.info("Created folder %s", path)
        return True
