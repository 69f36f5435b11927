"""Zamzar REST client for inbox-relay."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from inbox_relay.conversion.models import ArtifactRef, ConversionJob, parse_status
from inbox_relay.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://sandbox.zamzar.com/v1/"

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class ZamzarClient:
    """Async client for the four Zamzar endpoints the relay consumes.

    Authentication is HTTP Basic with the API key as username and an
    empty password. Every failure (network error, non-2xx status,
    malformed JSON) is raised as TransportError.
    """

    name = "zamzar"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Zamzar API key required.")
        self._base_url = base_url.rstrip("/") + "/"
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            auth=httpx.BasicAuth(api_key, ""),
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ZamzarClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def list_targets(self, source_extension: str) -> list[str]:
        """Names of the formats reachable from source_extension.

        An unknown source format (404) yields an empty list.
        """
        try:
            resp = await self._client.get(f"formats/{source_extension}")
        except httpx.HTTPError as e:
            raise TransportError(self.name, "list_targets", e, retryable=True) from e
        if resp.status_code == 404:
            logger.debug("Source format %r unknown to the service", source_extension)
            return []
        data = self._json(resp, "list_targets")
        targets = data.get("targets")
        if not isinstance(targets, list):
            raise TransportError(
                self.name, "list_targets", ValueError("response has no 'targets' list")
            )
        return [t["name"] for t in targets if isinstance(t, dict) and "name" in t]

    async def create_job(
        self, file_name: str, data: bytes, target_format: str
    ) -> ConversionJob:
        """Upload source bytes and start a conversion job."""
        try:
            resp = await self._client.post(
                "jobs",
                data={"target_format": target_format},
                files={"source_file": (file_name, data)},
            )
        except httpx.HTTPError as e:
            raise TransportError(self.name, "create_job", e, retryable=True) from e
        return self._parse_job(self._json(resp, "create_job"), "create_job")

    async def get_job(self, job_id: int) -> ConversionJob:
        """Fetch the current status of a job."""
        try:
            resp = await self._client.get(f"jobs/{job_id}")
        except httpx.HTTPError as e:
            raise TransportError(self.name, "get_job", e, retryable=True) from e
        return self._parse_job(self._json(resp, "get_job"), "get_job")

    async def cancel_job(self, job_id: int) -> None:
        """Cancel a job that has not finished."""
        try:
            resp = await self._client.delete(f"jobs/{job_id}")
        except httpx.HTTPError as e:
            raise TransportError(self.name, "cancel_job", e, retryable=True) from e
        self._check(resp, "cancel_job")

    async def download_file(self, file_id: int) -> bytes:
        """Download the content of a converted file."""
        try:
            resp = await self._client.get(f"files/{file_id}/content")
        except httpx.HTTPError as e:
            raise TransportError(self.name, "download_file", e, retryable=True) from e
        self._check(resp, "download_file")
        return resp.content

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    def _check(self, resp: httpx.Response, operation: str) -> None:
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                self.name,
                operation,
                e,
                retryable=resp.status_code in _RETRYABLE_STATUS,
            ) from e

    def _json(self, resp: httpx.Response, operation: str) -> dict[str, Any]:
        self._check(resp, operation)
        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(self.name, operation, e) from e
        if not isinstance(data, dict):
            raise TransportError(
                self.name, operation, ValueError("expected a JSON object")
            )
        return data

    def _parse_job(self, data: dict[str, Any], operation: str) -> ConversionJob:
        try:
            job_id = int(data["id"])
            target_format = data.get("target_format", "")
            artifacts = [
                ArtifactRef(
                    artifact_id=int(f["id"]),
                    target_extension=target_format,
                    name=f.get("name"),
                )
                for f in data.get("target_files") or []
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(self.name, operation, ValueError(f"malformed job: {e}")) from e
        raw_status = data.get("status")
        if not isinstance(raw_status, str):
            raw_status = None
        return ConversionJob(
            job_id=job_id,
            status=parse_status(raw_status),
            raw_status=raw_status,
            artifacts=artifacts,
        )
