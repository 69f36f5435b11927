"""Sequential retrieval of a finished job's artifacts."""

from __future__ import annotations

import logging
from typing import Literal

from inbox_relay.conversion.client import ZamzarClient
from inbox_relay.conversion.models import ConversionJob, RetrievedArtifact
from inbox_relay.errors import TransportError

logger = logging.getLogger(__name__)


class ArtifactRetriever:
    """Fetches artifacts one at a time, in job order.

    With policy ``abort`` the first failed fetch raises; with
    ``best_effort`` failed artifacts are skipped as long as at least one
    was retrieved.
    """

    def __init__(
        self,
        client: ZamzarClient,
        policy: Literal["abort", "best_effort"] = "abort",
    ) -> None:
        self.client = client
        self.policy = policy

    async def fetch(self, artifact_id: int) -> bytes:
        return await self.client.download_file(artifact_id)

    async def fetch_all(self, job: ConversionJob) -> list[RetrievedArtifact]:
        retrieved: list[RetrievedArtifact] = []
        last_error: TransportError | None = None

        for index, ref in enumerate(job.artifacts):
            logger.info("Getting file %d of %d", index + 1, len(job.artifacts))
            try:
                content = await self.fetch(ref.artifact_id)
            except TransportError as e:
                if self.policy == "abort":
                    raise
                logger.warning("Skipping artifact %d of job %d: %s", ref.artifact_id, job.job_id, e)
                last_error = e
                continue
            retrieved.append(RetrievedArtifact(index=index, ref=ref, content=content))

        if not retrieved:
            raise last_error or TransportError(
                "zamzar", "fetch_all", ValueError(f"job {job.job_id} produced no artifacts")
            )
        return retrieved
