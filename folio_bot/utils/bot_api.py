# folio_bot/utils/bot_api.py
"""Thin HTTPS client for the few Telegram Bot API calls made outside pyrogram."""
import asyncio
import logging
from typing import Optional

import aiohttp

from folio_bot import config

api_logger = logging.getLogger(__name__)


class BotApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class StaleFileError(BotApiError):
    """getFile answered 400: the file_id no longer points at a file."""


class BotApiClient:
    def __init__(self, token: str, base_url: Optional[str] = None, session: Optional[aiohttp.ClientSession] = None,
                 timeout: float = 10):
        self.token = token
        self.base_url = (base_url or config.TELEGRAM_API_BASE).rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _call(self, method: str, **params) -> dict:
        url = f"{self.base_url}/bot{self.token}/{method}"
        try:
            async with self._get_session().post(url, json=params) as response:
                try:
                    data = await response.json(content_type=None) or {}
                except ValueError:
                    data = {}
                if response.status >= 400 or not data.get("ok"):
                    raise BotApiError(data.get("description") or f"HTTP {response.status}", status=response.status)
                return data.get("result") or {}
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise BotApiError(f"{method} failed: {e!r}") from e

    async def get_file_url(self, file_id: str) -> str:
        """Download URL for a Telegram file_id. Raises StaleFileError when Telegram no longer knows it."""
        try:
            result = await self._call("getFile", file_id=file_id)
        except BotApiError as e:
            if e.status == 400:
                raise StaleFileError(str(e), status=400) from e
            raise
        file_path = result.get("file_path")
        if not file_path:
            raise BotApiError(f"getFile returned no file_path for {file_id}")
        return f"{self.base_url}/file/bot{self.token}/{file_path}"

    async def send_message(self, chat_id, text: str, html: bool = True) -> None:
        params = {"chat_id": chat_id, "text": text, "disable_web_page_preview": True}
        if html:
            params["parse_mode"] = "HTML"
        await self._call("sendMessage", **params)

    async def notify_admin(self, text: str) -> None:
        """Webhook-mode admin notices. Failures are logged only."""
        if not config.ADMIN_CHAT_ID:
            return
        try:
            await self.send_message(config.ADMIN_CHAT_ID, text)
        except BotApiError as e:
            api_logger.error(f"Failed to notify admin: {e}")

    async def set_webhook(self, url: str) -> None:
        await self._call("setWebhook", url=url)
        api_logger.info(f"Webhook set to {url.replace(self.token, '<token>')}")
