"""Conversion job driver: submit a job and poll it to a terminal state."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from inbox_relay.config.models import PollConfig
from inbox_relay.conversion.client import ZamzarClient
from inbox_relay.conversion.models import ConversionJob, ConversionRequest, JobStatus
from inbox_relay.errors import ConversionFailedError, PollTimeoutError, TransportError

logger = logging.getLogger(__name__)


class ConversionJobDriver:
    """Owns the lifetime of a single remote job.

    Polling backs off exponentially between status checks and gives up
    after ``max_wait`` seconds, cancelling the remote job so it is not
    left running.
    """

    def __init__(
        self,
        client: ZamzarClient,
        poll: PollConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.poll_config = poll or PollConfig()
        self._sleep = sleep
        self._clock = clock

    async def submit(self, request: ConversionRequest) -> ConversionJob:
        job = await self.client.create_job(
            request.source_file_name, request.source_bytes, request.target_extension
        )
        logger.info("File uploaded, job id %d", job.job_id)
        return job

    async def poll(self, job_id: int) -> ConversionJob:
        """Poll until the job is successful; raise on failure or timeout.

        Any other error or cancellation while polling cancels the remote job
        before propagating.
        """
        try:
            return await self._poll_until_terminal(job_id)
        except (ConversionFailedError, PollTimeoutError):
            raise
        except BaseException:
            await self._cancel(job_id)
            raise

    async def _poll_until_terminal(self, job_id: int) -> ConversionJob:
        cfg = self.poll_config
        delay = cfg.initial_delay
        started = self._clock()

        while True:
            job = await self.client.get_job(job_id)
            logger.info("Conversion status: %s", job.raw_status or job.status.value)

            if job.status == JobStatus.successful:
                count = len(job.artifacts)
                logger.info("Converted into %d %s", count, "file" if count == 1 else "files")
                return job
            if job.status == JobStatus.failed:
                raise ConversionFailedError(job_id)

            waited = self._clock() - started
            if waited >= cfg.max_wait:
                await self._cancel(job_id)
                raise PollTimeoutError(job_id, waited, job.raw_status or job.status.value)

            await self._sleep(min(delay, cfg.max_wait - waited))
            delay = min(delay * cfg.multiplier, cfg.max_delay)

    async def run(self, request: ConversionRequest) -> ConversionJob:
        job = await self.submit(request)
        return await self.poll(job.job_id)

    async def _cancel(self, job_id: int) -> None:
        try:
            await self.client.cancel_job(job_id)
            logger.warning("Cancelled job %d", job_id)
        except TransportError:
            logger.warning("Could not cancel job %d", job_id, exc_info=True)
