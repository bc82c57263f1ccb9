"""Commands against the content platform (disable, remove, geo-block, reinstate).

Commands are expected to be idempotent on the platform side.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from notice_engine.core.config import settings
from notice_engine.services.errors import ExternalServiceUnavailable

logger = logging.getLogger(__name__)


class ContentStore(ABC):
    @abstractmethod
    def disable(self, content_id: str, content_type: str) -> None:
        pass

    @abstractmethod
    def remove(self, content_id: str, content_type: str) -> None:
        pass

    @abstractmethod
    def geo_block(self, content_id: str, content_type: str, regions: list[str]) -> None:
        pass

    @abstractmethod
    def reinstate(self, content_id: str, content_type: str) -> None:
        pass


class LoggingContentStore(ContentStore):
    """Log-only store for environments without a content platform."""

    def _log(self, command: str, content_id: str, content_type: str, **extra) -> None:
        logger.info(
            "Content store command",
            extra={"command": command, "content_id": content_id, "content_type": content_type, **extra},
        )

    def disable(self, content_id: str, content_type: str) -> None:
        self._log("disable", content_id, content_type)

    def remove(self, content_id: str, content_type: str) -> None:
        self._log("remove", content_id, content_type)

    def geo_block(self, content_id: str, content_type: str, regions: list[str]) -> None:
        self._log("geo_block", content_id, content_type, regions=regions)

    def reinstate(self, content_id: str, content_type: str) -> None:
        self._log("reinstate", content_id, content_type)


class HttpContentStore(ContentStore):
    """Content platform reached over its internal moderation API."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _command(self, command: str, content_id: str, content_type: str, body: dict | None = None) -> None:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    f"{self.base_url}/content/{content_type}/{content_id}/{command}",
                    headers=headers,
                    json=body or {},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ExternalServiceUnavailable(f"Content store {command} failed: {exc}") from exc

    def disable(self, content_id: str, content_type: str) -> None:
        self._command("disable", content_id, content_type)

    def remove(self, content_id: str, content_type: str) -> None:
        self._command("remove", content_id, content_type)

    def geo_block(self, content_id: str, content_type: str, regions: list[str]) -> None:
        self._command("geo-block", content_id, content_type, {"regions": regions})

    def reinstate(self, content_id: str, content_type: str) -> None:
        self._command("reinstate", content_id, content_type)


def get_content_store() -> ContentStore:
    if settings.CONTENT_STORE_URL:
        return HttpContentStore(
            settings.CONTENT_STORE_URL,
            api_key=settings.CONTENT_STORE_API_KEY,
            timeout=settings.EXTERNAL_HTTP_TIMEOUT_SECONDS,
        )
    return LoggingContentStore()
