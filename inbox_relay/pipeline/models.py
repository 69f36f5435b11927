"""Pydantic models for placement and iteration results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PlacementOutcome(BaseModel):
    """Where a processed file ended up."""

    model_config = ConfigDict(frozen=True)

    converted: bool
    destination_paths: list[str] = Field(default_factory=list)


class Outcome(str, Enum):
    """What one orchestrator iteration did."""

    idle = "idle"
    converted = "converted"
    unchanged = "unchanged"
    unconvertible = "unconvertible"
    error = "error"


class IterationResult(BaseModel):
    """Summary of a single scan-and-process iteration."""

    outcome: Outcome
    source_path: str | None = None
    destination_paths: list[str] = Field(default_factory=list)
    reason: str | None = None
