"""Filesystem-backed storage that mirrors a remote folder tree in a local directory."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from inbox_relay.errors import TransportError
from inbox_relay.storage.base import StorageProvider
from inbox_relay.storage.models import FolderEntry, join_path

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LocalStorage(StorageProvider):
    """StorageProvider over a local directory.

    Remote paths map onto ``root``; listings are sorted by name so the
    scan order is stable.
    """

    name = "local"

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        rel = path.strip("/")
        target = (self._root / rel).resolve() if rel else self._root
        if not target.is_relative_to(self._root):
            raise ValueError(f"Path escapes storage root: {path}")
        return target

    async def _call(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(fn)
        except OSError as e:
            raise TransportError(self.name, operation, e) from e

    async def connect(self) -> str:
        def _sync() -> str:
            self._root.mkdir(parents=True, exist_ok=True)
            return str(self._root)

        return await self._call("connect", _sync)

    async def list_folder(self, path: str) -> list[FolderEntry]:
        folder = self._resolve(path)

        def _sync() -> list[FolderEntry]:
            return [
                FolderEntry(
                    name=p.name,
                    path=join_path(path, p.name),
                    is_file=p.is_file(),
                    is_folder=p.is_dir(),
                )
                for p in sorted(folder.iterdir(), key=lambda p: p.name)
            ]

        return await self._call("list_folder", _sync)

    async def download(self, path: str) -> bytes:
        target = self._resolve(path)
        return await self._call("download", target.read_bytes)

    async def upload(self, path: str, data: bytes, overwrite: bool = True) -> None:
        target = self._resolve(path)

        def _sync() -> None:
            if target.exists() and not overwrite:
                raise FileExistsError(f"{path} already exists")
            target.write_bytes(data)

        await self._call("upload", _sync)

    async def move(self, source: str, destination: str) -> None:
        src = self._resolve(source)
        dst = self._resolve(destination)

        def _sync() -> None:
            if dst.exists():
                raise FileExistsError(f"{destination} already exists")
            shutil.move(str(src), str(dst))

        await self._call("move", _sync)

    async def delete(self, path: str) -> None:
        target = self._resolve(path)

        def _sync() -> None:
            if target.is_dir():
                shutil.rmtree(target)
            else:
                target.unlink()

        await self._call("delete", _sync)

    async def create_folder(self, path: str) -> None:
        target = self._resolve(path)
        await self._call("create_folder", lambda: target.mkdir(parents=True))
