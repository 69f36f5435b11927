"""Per-file orchestration: scanning, path parsing, placement, and the work loop."""

from inbox_relay.pipeline.models import IterationResult, Outcome, PlacementOutcome
from inbox_relay.pipeline.orchestrator import Orchestrator
from inbox_relay.pipeline.paths import ParsedPath, parse_path, split_extension
from inbox_relay.pipeline.router import PlacementRouter, converted_paths
from inbox_relay.pipeline.scanner import InboxScanner

__all__ = [
    "InboxScanner",
    "IterationResult",
    "Orchestrator",
    "Outcome",
    "ParsedPath",
    "PlacementOutcome",
    "PlacementRouter",
    "converted_paths",
    "parse_path",
    "split_extension",
]
