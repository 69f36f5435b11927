"""Pydantic models for the conversion subsystem."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    """Lifecycle states for a remote conversion job."""

    queued = "queued"
    processing = "processing"
    successful = "successful"
    failed = "failed"
    unknown = "unknown"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.successful, JobStatus.failed)


# Service status strings -> JobStatus, matched case-insensitively. Anything not
# listed is ``unknown``. A cancelled job never produces output, so it counts as
# ``failed`` and ends polling like one.
_STATUS_ALIASES: dict[str, JobStatus] = {
    "initialising": JobStatus.queued,
    "queued": JobStatus.queued,
    "converting": JobStatus.processing,
    "processing": JobStatus.processing,
    "successful": JobStatus.successful,
    "failed": JobStatus.failed,
    "cancelled": JobStatus.failed,
}


def parse_status(raw: str | None) -> JobStatus:
    """Map a service status string onto JobStatus."""
    if raw is None:
        return JobStatus.unknown
    return _STATUS_ALIASES.get(raw.lower(), JobStatus.unknown)


class ArtifactRef(BaseModel):
    """One output file produced by a successful job."""

    model_config = ConfigDict(frozen=True)

    artifact_id: int
    target_extension: str
    name: str | None = None


class ConversionJob(BaseModel):
    """Snapshot of a remote job as of the latest poll.

    Every poll yields a new snapshot; artifacts are never merged across polls.
    """

    model_config = ConfigDict(frozen=True)

    job_id: int
    status: JobStatus = JobStatus.queued
    raw_status: str | None = None
    artifacts: list[ArtifactRef] = Field(default_factory=list)


class ConversionRequest(BaseModel):
    """A single inbox file on its way to the conversion service."""

    model_config = ConfigDict(frozen=True)

    source_path: str
    source_bytes: bytes = Field(repr=False)
    file_base_name: str
    source_extension: str
    target_extension: str

    @property
    def source_file_name(self) -> str:
        if not self.source_extension:
            return self.file_base_name
        return f"{self.file_base_name}.{self.source_extension}"


class RetrievedArtifact(BaseModel):
    """Artifact content fetched from the service, with its position in the job."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    ref: ArtifactRef
    content: bytes = Field(repr=False)
