"""Remote storage backends for inbox-relay."""

import os

from inbox_relay.config.loader import resolve_access_token
from inbox_relay.config.models import StorageConfig
from inbox_relay.storage.base import StorageProvider
from inbox_relay.storage.dropbox_storage import DropboxStorage
from inbox_relay.storage.local import LocalStorage
from inbox_relay.storage.models import FolderEntry, join_path, split_path


def create_storage(config: StorageConfig) -> StorageProvider:
    """Create a storage backend from config.

    For Dropbox, resolves the access token (explicit value or env var) and
    passes the app key/secret through when a refresh token is configured.
    """
    if config.provider == "local":
        return LocalStorage(config.local_root)

    if config.refresh_token:
        return DropboxStorage(
            access_token=config.access_token or os.environ.get(config.access_token_env, ""),
            refresh_token=config.refresh_token,
            app_key=os.environ.get(config.app_key_env) or None,
            app_secret=os.environ.get(config.app_secret_env) or None,
            timeout=config.timeout,
        )
    return DropboxStorage(
        access_token=resolve_access_token(config),
        timeout=config.timeout,
    )


__all__ = [
    "DropboxStorage",
    "FolderEntry",
    "LocalStorage",
    "StorageProvider",
    "create_storage",
    "join_path",
    "split_path",
]
