"""
Thin async client for the Discord REST API, plus the notifier that posts
citation and arrest reports to the reports channel.
"""

import json
import logging
from typing import List, Optional, Tuple

import httpx

from messages import decode_data_url, format_arrest_message, format_citation_message
from records import ArrestRecord, CitationRecord
from settings import DISCORD_API_BASE

logger = logging.getLogger(__name__)

Attachment = Tuple[str, bytes, str]


class DiscordError(Exception):
    """Discord answered with an error status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DiscordClient:
    def __init__(self, bot_token: str, api_base: str = DISCORD_API_BASE,
                 transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 10.0):
        self.api_base = api_base.rstrip("/")
        self._headers = {"Authorization": f"Bot {bot_token}"}
        self._transport = transport
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self):
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_base,
                headers=self._headers,
                transport=self._transport,
                timeout=self._timeout,
            )

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if self._client is None:
            await self.start()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise DiscordError(f"{method} {path} failed: {e}") from e
        if response.status_code >= 400:
            raise DiscordError(
                f"{method} {path} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    async def fetch_member(self, guild_id: str, user_id: str) -> dict:
        response = await self._request("GET", f"/guilds/{guild_id}/members/{user_id}")
        return response.json()

    async def fetch_guild_roles(self, guild_id: str) -> List[dict]:
        response = await self._request("GET", f"/guilds/{guild_id}/roles")
        return response.json()

    async def send_message(self, channel_id: str, content: str,
                           attachment: Optional[Attachment] = None) -> dict:
        path = f"/channels/{channel_id}/messages"
        if attachment is None:
            response = await self._request("POST", path, json={"content": content})
        else:
            filename, data, content_type = attachment
            payload = {
                "content": content,
                "attachments": [{"id": 0, "filename": filename}],
            }
            response = await self._request(
                "POST",
                path,
                data={"payload_json": json.dumps(payload)},
                files={"files[0]": (filename, data, content_type)},
            )
        return response.json()


class ReportNotifier:
    """Posts formatted reports to one fixed channel."""

    def __init__(self, client: DiscordClient, channel_id: str):
        self.client = client
        self.channel_id = channel_id

    async def send_citation(self, record: CitationRecord):
        message = format_citation_message(record)
        logger.debug("Sending citation message: %s", message)
        await self.client.send_message(self.channel_id, message)

    async def send_arrest(self, record: ArrestRecord):
        attachment = None
        if not record.description and record.mugshot_base64:
            attachment = decode_data_url(record.mugshot_base64)
        message = format_arrest_message(record, record.summary(), has_attachment=attachment is not None)
        logger.debug("Sending arrest message: %s", message)
        await self.client.send_message(self.channel_id, message, attachment=attachment)

    # Fire-and-log wrappers: failures are logged, never raised.

    async def deliver_citation(self, record: CitationRecord) -> bool:
        try:
            await self.send_citation(record)
        except Exception:
            logger.exception("Failed to send citation to Discord")
            return False
        logger.info("Citation sent to Discord")
        return True

    async def deliver_arrest(self, record: ArrestRecord) -> bool:
        try:
            await self.send_arrest(record)
        except Exception:
            logger.exception("Failed to send arrest report to Discord")
            return False
        logger.info("Arrest report sent to Discord")
        return True
