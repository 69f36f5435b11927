"""Inbox scanner: picks the next file to process."""

from __future__ import annotations

import logging

from inbox_relay.storage.base import StorageProvider
from inbox_relay.storage.models import join_path

logger = logging.getLogger(__name__)


class InboxScanner:
    """Lists the inbox and returns the first file in listing order."""

    def __init__(self, storage: StorageProvider, inbox: str) -> None:
        self.storage = storage
        self.inbox = inbox

    async def scan(self) -> str | None:
        """Path of the first file entry in the inbox, or None if there are no files."""
        entries = await self.storage.list_folder(self.inbox)
        for entry in entries:
            if entry.is_file:
                return join_path(self.inbox, entry.name)
        logger.debug("No files in %s (%d entries)", self.inbox, len(entries))
        return None
