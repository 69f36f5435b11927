"""Conversion-service client and job state machine."""

from inbox_relay.config.loader import resolve_api_key
from inbox_relay.config.models import ConversionConfig
from inbox_relay.conversion.client import DEFAULT_BASE_URL, ZamzarClient
from inbox_relay.conversion.driver import ConversionJobDriver
from inbox_relay.conversion.models import (
    ArtifactRef,
    ConversionJob,
    ConversionRequest,
    JobStatus,
    RetrievedArtifact,
    parse_status,
)
from inbox_relay.conversion.resolver import FormatCapabilityResolver
from inbox_relay.conversion.retriever import ArtifactRetriever


def create_conversion_client(config: ConversionConfig) -> ZamzarClient:
    """Create a conversion client from config, resolving the API key."""
    return ZamzarClient(
        api_key=resolve_api_key(config),
        base_url=config.base_url,
        timeout=config.timeout,
    )


__all__ = [
    "DEFAULT_BASE_URL",
    "ArtifactRef",
    "ArtifactRetriever",
    "ConversionJob",
    "ConversionJobDriver",
    "ConversionRequest",
    "FormatCapabilityResolver",
    "JobStatus",
    "RetrievedArtifact",
    "ZamzarClient",
    "create_conversion_client",
    "parse_status",
]
