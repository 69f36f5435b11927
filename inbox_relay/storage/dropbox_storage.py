"""Dropbox storage backend using the official dropbox SDK."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from functools import cached_property
from typing import TypeVar

import dropbox
import requests
from dropbox.exceptions import ApiError, AuthError, DropboxException, HttpError
from dropbox.files import FileMetadata, FolderMetadata, WriteMode

from inbox_relay.errors import AuthenticationError, TransportError
from inbox_relay.storage.base import StorageProvider
from inbox_relay.storage.models import FolderEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_STATUS = {429, 500, 502, 503, 504}


def _api_path(path: str) -> str:
    """Dropbox addresses the root folder as "" rather than "/"."""
    path = path.rstrip("/")
    return path if path else ""


class DropboxStorage(StorageProvider):
    """Dropbox implementation of StorageProvider.

    The SDK is synchronous, so every blocking call is wrapped
    with asyncio.to_thread() to avoid blocking the event loop.
    """

    name = "dropbox"

    def __init__(
        self,
        access_token: str,
        refresh_token: str | None = None,
        app_key: str | None = None,
        app_secret: str | None = None,
        timeout: int = 100,
    ) -> None:
        if not access_token and not refresh_token:
            raise ValueError("Dropbox access token or refresh token required.")
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._app_key = app_key
        self._app_secret = app_secret
        self._timeout = timeout

    @cached_property
    def _client(self) -> dropbox.Dropbox:
        return dropbox.Dropbox(
            oauth2_access_token=self._access_token or None,
            oauth2_refresh_token=self._refresh_token,
            app_key=self._app_key,
            app_secret=self._app_secret,
            timeout=self._timeout,
        )

    def same_name(self, a: str, b: str) -> bool:
        # Dropbox paths are case-insensitive
        return a.casefold() == b.casefold()

    async def _call(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(fn)
        except ApiError as e:
            raise TransportError(self.name, operation, e) from e
        except HttpError as e:
            raise TransportError(
                self.name, operation, e, retryable=e.status_code in _TRANSIENT_STATUS
            ) from e
        except (DropboxException, requests.exceptions.RequestException) as e:
            raise TransportError(self.name, operation, e, retryable=True) from e

    async def connect(self) -> str:
        """Verify the token by fetching the current account."""
        try:
            account = await asyncio.to_thread(self._client.users_get_current_account)
        except AuthError as e:
            raise AuthenticationError(f"Dropbox rejected the access token: {e}") from e
        except (DropboxException, requests.exceptions.RequestException) as e:
            raise TransportError(self.name, "connect", e, retryable=True) from e
        return account.name.display_name

    async def list_folder(self, path: str) -> list[FolderEntry]:
        def _sync() -> list[FolderEntry]:
            result = self._client.files_list_folder(_api_path(path))
            raw = list(result.entries)
            while result.has_more:
                result = self._client.files_list_folder_continue(result.cursor)
                raw.extend(result.entries)
            # DeletedMetadata entries are neither files nor folders
            return [
                FolderEntry(
                    name=e.name,
                    path=e.path_display or f"{_api_path(path)}/{e.name}",
                    is_file=isinstance(e, FileMetadata),
                    is_folder=isinstance(e, FolderMetadata),
                )
                for e in raw
            ]

        return await self._call("list_folder", _sync)

    async def download(self, path: str) -> bytes:
        def _sync() -> bytes:
            _, response = self._client.files_download(path)
            try:
                return response.content
            finally:
                response.close()

        return await self._call("download", _sync)

    async def upload(self, path: str, data: bytes, overwrite: bool = True) -> None:
        mode = WriteMode.overwrite if overwrite else WriteMode.add
        await self._call(
            "upload", lambda: self._client.files_upload(data, path, mode=mode)
        )
        logger.debug("Uploaded %d bytes to %s", len(data), path)

    async def move(self, source: str, destination: str) -> None:
        await self._call(
            "move", lambda: self._client.files_move_v2(source, destination)
        )

    async def delete(self, path: str) -> None:
        await self._call("delete", lambda: self._client.files_delete_v2(path))

    async def create_folder(self, path: str) -> None:
        await self._call(
            "create_folder", lambda: self._client.files_create_folder_v2(path)
        )
