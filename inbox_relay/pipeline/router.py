"""Placement router: decides and executes where processed files go.

Every sequence is delete-then-write, so collisions are always resolved by
overwriting and running the same placement twice converges to the same
folder state.
"""

from __future__ import annotations

import logging
from typing import Literal

from inbox_relay.config.models import FolderConfig
from inbox_relay.conversion.models import ConversionJob, ConversionRequest, RetrievedArtifact
from inbox_relay.errors import TransportError
from inbox_relay.pipeline.models import PlacementOutcome
from inbox_relay.pipeline.paths import ParsedPath
from inbox_relay.storage.base import StorageProvider
from inbox_relay.storage.models import join_path

logger = logging.getLogger(__name__)


def converted_paths(
    folder: str, base_name: str, target_extension: str, indices: list[int], multi: bool
) -> list[str]:
    """Destination paths for converted artifacts.

    A single artifact lands at ``{folder}/{base}.{ext}``; several land in
    ``{folder}/{base}/{base}{i}.{ext}`` with zero-based i.
    """
    if not multi:
        return [join_path(folder, f"{base_name}.{target_extension}")]
    subfolder = join_path(folder, base_name)
    return [join_path(subfolder, f"{base_name}{i}.{target_extension}") for i in indices]


class PlacementRouter:
    def __init__(
        self,
        storage: StorageProvider,
        folders: FolderConfig,
        same_format_policy: Literal["leave", "move"] = "leave",
    ) -> None:
        self.storage = storage
        self.folders = folders
        self.same_format_policy = same_format_policy

    async def place_converted(
        self,
        request: ConversionRequest,
        job: ConversionJob,
        artifacts: list[RetrievedArtifact],
    ) -> PlacementOutcome:
        """Upload artifacts to the converted folder, then delete the original.

        The layout follows the job's artifact count, so names stay stable
        even if some artifacts were skipped during retrieval. If an upload or
        the delete of the original fails, the written output is discarded
        and the error re-raised, leaving only the original in the inbox.
        """
        folder = self.folders.converted
        base = request.file_base_name
        multi = len(job.artifacts) > 1
        destinations = converted_paths(
            folder, base, request.target_extension, [a.index for a in artifacts], multi
        )

        if multi:
            await self.storage.delete_if_exists(folder, base)
            await self.storage.create_folder(join_path(folder, base))
        else:
            await self.storage.delete_if_exists(folder, f"{base}.{request.target_extension}")

        # Output and original never both survive a failed placement
        try:
            for n, (artifact, dest) in enumerate(zip(artifacts, destinations), start=1):
                await self.storage.upload(dest, artifact.content, overwrite=True)
                logger.info("Uploaded file %d to %s", n, dest)
            await self.storage.delete(request.source_path)
        except TransportError:
            await self._discard(folder, base, request.target_extension, multi)
            raise

        logger.info("File converted and placed in '%s'", folder)
        return PlacementOutcome(converted=True, destination_paths=destinations)

    async def place_unchanged(self, parsed: ParsedPath) -> PlacementOutcome:
        """Source already has the target format; apply the same-format policy."""
        if self.same_format_policy == "leave":
            logger.info("Target format is the same as the source, no conversion necessary")
            return PlacementOutcome(converted=True, destination_paths=[parsed.path])

        folder = self.folders.converted
        destination = join_path(folder, parsed.file_name)
        await self.storage.delete_if_exists(folder, parsed.file_name)
        await self.storage.move(parsed.path, destination)
        logger.info("No conversion necessary, moved to '%s'", folder)
        return PlacementOutcome(converted=True, destination_paths=[destination])

    async def place_unconvertible(self, parsed: ParsedPath) -> PlacementOutcome:
        """Move the original into the unconvertible folder, overwriting any namesake."""
        folder = self.folders.unconvertible
        destination = join_path(folder, parsed.file_name)
        await self.storage.delete_if_exists(folder, parsed.file_name)
        await self.storage.move(parsed.path, destination)
        logger.info("Could not convert file, moved to '%s'", folder)
        return PlacementOutcome(converted=False, destination_paths=[destination])

    async def _discard(self, folder: str, base: str, ext: str, multi: bool) -> None:
        name = base if multi else f"{base}.{ext}"
        try:
            await self.storage.delete_if_exists(folder, name)
        except TransportError:
            logger.warning("Could not remove partial upload %s/%s", folder, name, exc_info=True)
