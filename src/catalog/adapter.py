"""
Catalog adapters.

Fetch the raw remediation video records for a level and turn them into
VideoRecord models. Two sources are supported:

- HttpCatalogAdapter: the backend's /api/videos/remediation endpoint
- JsonCatalogAdapter: a local JSON file (offline use, fixtures)

A fetch that ultimately fails is logged and yields an empty catalog, which
the player surfaces as "no content available".
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol

import httpx
from loguru import logger
from pydantic import ValidationError

from src.catalog.levels import Level, accepts_video_level
from src.catalog.models import VideoRecord
from src.errors import CatalogError


class CatalogAdapter(Protocol):
    """Provider of the raw catalog for a learner level."""

    async def fetch(self, level: str) -> list[VideoRecord]: ...


def parse_records(raw: Any) -> list[VideoRecord]:
    """
    Validate raw catalog records.

    A body that is not a list is treated as an empty catalog; individual
    malformed records are skipped.
    """
    if not isinstance(raw, list):
        logger.warning(f"Catalog payload is {type(raw).__name__}, expected a list; using empty catalog")
        return []

    videos = []
    for position, record in enumerate(raw):
        try:
            videos.append(VideoRecord.model_validate(record))
        except ValidationError as e:
            logger.warning(f"Skipping malformed catalog record #{position}: {e.error_count()} error(s)")
    return videos


def filter_catalog(
    videos: list[VideoRecord],
    learner: Level,
    subject: str | None = None,
) -> list[VideoRecord]:
    """
    Keep the videos of the selected subject, dropping same-stage videos
    whose track does not match the learner's.
    """
    subject_key = subject.lower() if subject else None
    kept = [
        v for v in videos
        if (subject_key is None or (v.subject or "").lower() == subject_key)
        and accepts_video_level(v.level, learner)
    ]
    logger.debug(f"Catalog filter kept {len(kept)}/{len(videos)} videos for {learner} / {subject}")
    return kept


class HttpCatalogAdapter:
    """HTTP client for the remediation video catalog."""

    def __init__(
        self,
        base_url: str,
        endpoint: str = "/api/videos/remediation",
        token: str | None = None,
        timeout_ms: int = 10000,
        retry_attempts: int = 3,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize catalog client.

        Args:
            base_url: Backend base URL
            endpoint: Catalog path, queried with ?niveau=<level>
            token: Optional bearer token
            timeout_ms: Request timeout in milliseconds
            retry_attempts: Attempts on timeouts, connection errors and 5xx
            client: Pre-built client (tests)
        """
        self.url = f"{base_url.rstrip('/')}{endpoint}"
        self.retry_attempts = max(1, retry_attempts)
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_ms / 1000.0),
            headers=headers,
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> HttpCatalogAdapter:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def fetch_raw(self, level: str) -> Any:
        """
        Fetch the decoded catalog body with retry logic.

        Raises:
            CatalogError: After all attempts fail, or on a 4xx response
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self.client.get(self.url, params={"niveau": level})
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                last_error = e
                if e.response.status_code < 500:
                    raise CatalogError(f"Catalog request rejected: HTTP {e.response.status_code}") from e
                logger.warning(
                    f"Catalog server error {e.response.status_code} on attempt "
                    f"{attempt + 1}/{self.retry_attempts}"
                )

            except (httpx.TimeoutException, httpx.RequestError) as e:
                last_error = e
                logger.warning(f"Catalog request error on attempt {attempt + 1}/{self.retry_attempts}: {e}")

            except ValueError as e:
                raise CatalogError(f"Catalog response is not JSON: {e}") from e

            if attempt < self.retry_attempts - 1:
                await asyncio.sleep(2 ** attempt)

        raise CatalogError(f"Catalog fetch failed after {self.retry_attempts} attempts: {last_error}")

    async def fetch(self, level: str) -> list[VideoRecord]:
        try:
            raw = await self.fetch_raw(level)
        except CatalogError as e:
            logger.error(f"{e}; continuing with an empty catalog")
            return []
        videos = parse_records(raw)
        logger.info(f"Fetched {len(videos)} catalog videos for level {level}")
        return videos


class JsonCatalogAdapter:
    """
    Catalog read from a JSON file.

    The file holds either a list of records, or an object mapping a level
    label to its list of records.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    async def fetch(self, level: str) -> list[VideoRecord]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read catalog file {self.path}: {e}; continuing with an empty catalog")
            return []

        if isinstance(data, dict):
            data = data.get(level, [])
        videos = parse_records(data)
        logger.info(f"Loaded {len(videos)} catalog videos from {self.path}")
        return videos


async def load_catalog(
    adapter: CatalogAdapter,
    level: str,
    subject: str | None = None,
) -> list[VideoRecord]:
    """Fetch the catalog for a learner and apply the subject/track filter."""
    learner = Level.parse(level)
    videos = await adapter.fetch(learner.stage)
    return filter_catalog(videos, learner, subject)
