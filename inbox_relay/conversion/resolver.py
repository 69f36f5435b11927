"""Format capability checks against the conversion service."""

from __future__ import annotations

import logging

from inbox_relay.conversion.client import ZamzarClient

logger = logging.getLogger(__name__)


class FormatCapabilityResolver:
    """Asks the service which target formats a source format can reach.

    No caching: every call is one round-trip, even for a repeated pair.
    """

    def __init__(self, client: ZamzarClient) -> None:
        self.client = client

    async def targets(self, source_extension: str) -> list[str]:
        return await self.client.list_targets(source_extension)

    async def can_convert(self, source_extension: str, target_extension: str) -> bool:
        """True iff target_extension is listed (exact, case-sensitive) for the source."""
        names = await self.targets(source_extension)
        found = target_extension in names
        if not found:
            logger.info(
                "Cannot convert '%s' to '%s': target format not found",
                source_extension,
                target_extension,
            )
        return found
