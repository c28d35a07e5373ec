# hrfe/services/timeline.py

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import httpx

from ..config import (
    HRFE_ACCOUNT_HANDLE,
    TIMELINE_PAGE_SIZE,
    TIMELINE_TIMEOUT,
    TWITTER_API_BASE_URL,
    TWITTER_BEARER_TOKEN,
)

log = logging.getLogger(__name__)

USER_TIMELINE_PATH = "/statuses/user_timeline.json"

# e.g. 'Wed Oct 10 20:19:24 +0000 2018'
CREATED_AT_FORMAT = "%a %b %d %H:%M:%S %z %Y"


class SourceError(RuntimeError):
    """
    The timeline could not be fetched or its payload could not be read.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class TimelineMessage:
    id: int
    text: str
    created_at: datetime


def _parse_created_at(value: str) -> datetime:
    return datetime.strptime(value, CREATED_AT_FORMAT)


def _parse_message(item: dict) -> TimelineMessage:
    # Extended mode carries the untruncated text in full_text
    text = item.get("full_text")
    if text is None:
        text = item["text"]
    return TimelineMessage(
        id=int(item["id"]),
        text=text,
        created_at=_parse_created_at(item["created_at"]),
    )


class TimelineClient:
    """
    Pages through one account's timeline, bounded on a single side per call.

    Either pass an `httpx.AsyncClient` (tests use one with a MockTransport)
    or let the client open its own per request.
    """

    def __init__(
        self,
        handle: str = HRFE_ACCOUNT_HANDLE,
        bearer_token: Optional[str] = TWITTER_BEARER_TOKEN,
        base_url: str = TWITTER_API_BASE_URL,
        page_size: int = TIMELINE_PAGE_SIZE,
        timeout: float = TIMELINE_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.handle = handle
        self.bearer_token = bearer_token
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.timeout = timeout
        self._client = client

    async def fetch_since(self, after_id: Optional[int]) -> List[TimelineMessage]:
        """
        Messages strictly newer than `after_id` (no bound when None).
        """
        params = {}
        if after_id is not None:
            params["since_id"] = after_id
        return await self._fetch(params)

    async def fetch_until(self, before_id: Optional[int]) -> List[TimelineMessage]:
        """
        Messages with an id at or below `before_id` (no bound when None).
        """
        params = {}
        if before_id is not None:
            params["max_id"] = before_id
        return await self._fetch(params)

    def _headers(self) -> dict:
        if not self.bearer_token:
            return {}
        return {"Authorization": f"Bearer {self.bearer_token}"}

    async def _get(self, params: dict) -> httpx.Response:
        url = self.base_url + USER_TIMELINE_PATH
        if self._client is not None:
            return await self._client.get(
                url, params=params, headers=self._headers(), timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.get(url, params=params, headers=self._headers())

    async def _fetch(self, bounds: dict) -> List[TimelineMessage]:
        params = {
            "screen_name": self.handle,
            "tweet_mode": "extended",
            "count": self.page_size,
            **bounds,
        }

        try:
            resp = await self._get(params)
        except httpx.HTTPError as e:
            raise SourceError(f"timeline request failed: {e}") from e

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error(
                "[Timeline] HTTP error %s: %s",
                e.response.status_code,
                e.response.text,
            )
            raise SourceError(
                f"timeline returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e

        try:
            items = resp.json()
            messages = [_parse_message(item) for item in items]
        except (ValueError, KeyError, TypeError) as e:
            raise SourceError(f"unreadable timeline payload: {e}") from e

        log.debug("[Timeline] %s %s -> %d messages", self.handle, bounds, len(messages))
        return messages
