"""Orchestrator: one inbox file per iteration, forever."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from inbox_relay.config.models import RelayConfig
from inbox_relay.conversion.client import ZamzarClient
from inbox_relay.conversion.driver import ConversionJobDriver
from inbox_relay.conversion.models import ConversionRequest
from inbox_relay.conversion.resolver import FormatCapabilityResolver
from inbox_relay.conversion.retriever import ArtifactRetriever
from inbox_relay.errors import (
    CapabilityNotFoundError,
    ConversionFailedError,
    PollTimeoutError,
    RelayError,
    TransportError,
)
from inbox_relay.pipeline.models import IterationResult, Outcome, PlacementOutcome
from inbox_relay.pipeline.paths import ParsedPath, parse_path
from inbox_relay.pipeline.router import PlacementRouter
from inbox_relay.pipeline.scanner import InboxScanner
from inbox_relay.storage.base import StorageProvider

logger = logging.getLogger(__name__)


class Orchestrator:
    """Drives scan -> resolve -> convert -> retrieve -> route for one file at a time.

    Storage session and configuration are injected; nothing is held in
    module state. At most one remote job is active per iteration.
    """

    def __init__(
        self,
        storage: StorageProvider,
        client: ZamzarClient,
        config: RelayConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.storage = storage
        self.config = config
        self.scanner = InboxScanner(storage, config.folders.inbox)
        self.resolver = FormatCapabilityResolver(client)
        self.driver = ConversionJobDriver(client, config.conversion.poll, sleep=sleep)
        self.retriever = ArtifactRetriever(client, config.partial_fetch_policy)
        self.router = PlacementRouter(storage, config.folders, config.same_format_policy)
        self._sleep = sleep

    async def prepare(self) -> str:
        """Verify the storage session and make sure all three folders exist."""
        account = await self.storage.connect()
        logger.info("Storage connection established as %s", account)
        folders = self.config.folders
        for path in (folders.unconvertible, folders.converted, folders.inbox):
            await self.storage.ensure_folder(path)
        return account

    # ------------------------------------------------------------------
    # One iteration
    # ------------------------------------------------------------------

    async def run_once(self) -> IterationResult:
        """Scan the inbox and fully resolve at most one file.

        Storage errors while scanning propagate; every error after a file
        has been picked is contained here.
        """
        logger.info("Searching for files...")
        path = await self.scanner.scan()
        if path is None:
            logger.info("No files to convert found")
            return IterationResult(outcome=Outcome.idle)
        return await self.process(path)

    async def process(self, path: str) -> IterationResult:
        parsed = parse_path(path)
        logger.info("'%s' file found at %s", parsed.extension, parsed.path)

        target = self.config.conversions.get(parsed.extension)
        if target is None:
            logger.info("No conversion configured for extension '%s'", parsed.extension)
            return await self._fail(parsed, "no conversion configured")

        try:
            if target == parsed.extension:
                placement = await self.router.place_unchanged(parsed)
                return IterationResult(
                    outcome=Outcome.unchanged,
                    source_path=path,
                    destination_paths=placement.destination_paths,
                )
            placement = await self._convert(parsed, target)
        except CapabilityNotFoundError as e:
            return await self._fail(parsed, str(e))
        except (ConversionFailedError, PollTimeoutError) as e:
            logger.warning("%s", e)
            return await self._fail(parsed, str(e))
        except TransportError as e:
            logger.error("Conversion of %s aborted: %s", path, e, exc_info=True)
            return await self._fail(parsed, str(e))

        return IterationResult(
            outcome=Outcome.converted,
            source_path=path,
            destination_paths=placement.destination_paths,
        )

    async def _convert(self, parsed: ParsedPath, target: str) -> PlacementOutcome:
        data = await self.storage.download(parsed.path)
        request = ConversionRequest(
            source_path=parsed.path,
            source_bytes=data,
            file_base_name=parsed.base_name,
            source_extension=parsed.extension,
            target_extension=target,
        )
        logger.info("Converting file to format: %s", target)

        if not await self.resolver.can_convert(parsed.extension, target):
            raise CapabilityNotFoundError(parsed.extension, target)

        job = await self.driver.run(request)
        artifacts = await self.retriever.fetch_all(job)
        return await self.router.place_converted(request, job, artifacts)

    async def _fail(self, parsed: ParsedPath, reason: str) -> IterationResult:
        try:
            placement = await self.router.place_unconvertible(parsed)
        except TransportError as e:
            logger.error("Could not move %s to the unconvertible folder: %s", parsed.path, e)
            return IterationResult(outcome=Outcome.error, source_path=parsed.path, reason=str(e))
        return IterationResult(
            outcome=Outcome.unconvertible,
            source_path=parsed.path,
            destination_paths=placement.destination_paths,
            reason=reason,
        )

    # ------------------------------------------------------------------
    # Work loop
    # ------------------------------------------------------------------

    async def run_forever(
        self,
        stop: asyncio.Event | None = None,
        on_result: Callable[[IterationResult], None] | None = None,
        max_iterations: int | None = None,
    ) -> int:
        """Repeat run_once with a fixed idle delay until stopped.

        Returns the number of iterations performed.
        """
        iterations = 0
        while stop is None or not stop.is_set():
            try:
                result = await self.run_once()
            except RelayError as e:
                logger.error("Iteration failed: %s", e)
                result = IterationResult(outcome=Outcome.error, reason=str(e))

            iterations += 1
            if on_result is not None:
                on_result(result)
            if max_iterations is not None and iterations >= max_iterations:
                break
            await self._sleep(self.config.idle_interval)
        return iterations
