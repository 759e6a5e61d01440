"""
Viewing notifications.

Two fire-and-forget reports go to the backend while a learner works through
the remediation queue:

- remediation: the focused video changed (level, current/next titles,
  first release month of the current video)
- videofinish: a video was left or finished (current/next titles)

Sending never blocks the caller: requests run as background asyncio tasks and
failures are logged and dropped.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field


class RemediationNotice(BaseModel):
    """Payload of the "viewing skill-remediation content" report."""

    model_config = ConfigDict(populate_by_name=True)

    level: str = Field(alias="niveau")
    video_title: str = Field(alias="video_titre")
    next_video_title: str | None = Field(default=None, alias="next_video_titre")
    start_month: str = ""


class VideoFinishedNotice(BaseModel):
    """Payload of the "video finished" report."""

    model_config = ConfigDict(populate_by_name=True)

    video_title: str = Field(alias="video_titre")
    next_video_title: str | None = Field(default=None, alias="next_video_titre")


class NotificationSink(Protocol):
    """Write-only telemetry collaborator; calls must return immediately."""

    def notify_remediation(self, notice: RemediationNotice) -> None: ...

    def notify_video_finished(self, notice: VideoFinishedNotice) -> None: ...


class NullNotificationSink:
    """Sink used when no backend or learner identity is configured."""

    def notify_remediation(self, notice: RemediationNotice) -> None:
        logger.debug(f"remediation notice (not sent): {notice.video_title}")

    def notify_video_finished(self, notice: VideoFinishedNotice) -> None:
        logger.debug(f"videofinish notice (not sent): {notice.video_title}")


class HttpNotificationSink:
    """Post notices to the backend in background tasks."""

    def __init__(
        self,
        base_url: str,
        learner_email: str | None,
        token: str | None = None,
        remediation_endpoint: str = "/api/notify/remediation",
        videofinish_endpoint: str = "/api/notify/videofinish",
        timeout_ms: int = 10000,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the sink.

        Args:
            base_url: Backend base URL
            learner_email: Signed-in learner; nothing is sent without one
            token: Optional bearer token
            remediation_endpoint: Path of the remediation report
            videofinish_endpoint: Path of the video-finished report
            timeout_ms: Request timeout in milliseconds
            client: Pre-built client (tests)
        """
        base = base_url.rstrip("/")
        self.remediation_url = f"{base}{remediation_endpoint}"
        self.videofinish_url = f"{base}{videofinish_endpoint}"
        self.learner_email = learner_email
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_ms / 1000.0),
            headers=headers,
        )
        self._tasks: set[asyncio.Task] = set()

    def notify_remediation(self, notice: RemediationNotice) -> None:
        self._send(self.remediation_url, notice)

    def notify_video_finished(self, notice: VideoFinishedNotice) -> None:
        self._send(self.videofinish_url, notice)

    def _send(self, url: str, notice: BaseModel) -> None:
        if not self.learner_email:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, dropping notification to {url}")
            return
        task = loop.create_task(self._post(url, notice.model_dump(by_alias=True)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _post(self, url: str, payload: dict) -> None:
        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Notification to {url} failed: {e}")

    async def drain(self) -> None:
        """Wait for in-flight notifications."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Flush pending notifications and close the HTTP client."""
        await self.drain()
        await self.client.aclose()
