# folio_bot/handlers/telegram_bridge.py
"""
Glue between Telegram and the ConversationEngine.

Polling mode: pyrogram delivers Messages to TelegramBridge.on_message.
Webhook mode: the web server turns Bot API update JSON into events with
event_from_update() and answers inline.
Either way the engine only ever sees InboundEvent objects.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from pyrogram import Client, filters
from pyrogram.enums import ParseMode
from pyrogram.errors import FloodWait, RPCError
from pyrogram.handlers import MessageHandler
from pyrogram.types import Message

from folio_bot import config
from folio_bot.engine.conversation import ConversationEngine
from folio_bot.engine.events import EventKind, InboundEvent, Reply

bridge_logger = logging.getLogger(__name__)


def split_message(text: str, limit: int = config.MAX_MESSAGE_LENGTH) -> List[str]:
    """Splits on line boundaries so no chunk exceeds `limit`. A single oversized line is hard-cut."""
    if len(text) <= limit:
        return [text]
    chunks: List[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def event_from_message(message: Message) -> Optional[InboundEvent]:
    """pyrogram Message -> InboundEvent, or None for message types the bot ignores."""
    actor_id = str(message.chat.id)
    if message.photo:
        photo = message.photo
        return InboundEvent.from_media(actor_id, EventKind.PHOTO, photo.file_id, photo.file_unique_id, message.caption)
    if message.video:
        video = message.video
        return InboundEvent.from_media(actor_id, EventKind.VIDEO, video.file_id, video.file_unique_id, message.caption)
    if message.text:
        return InboundEvent.from_text(actor_id, message.text)
    return None


def event_from_update(update: Dict[str, Any]) -> Optional[InboundEvent]:
    """Bot API update JSON (webhook payload) -> InboundEvent, or None when there is nothing to handle."""
    # Edits of old messages are not new input
    message = update.get("message")
    if not isinstance(message, dict):
        return None
    chat = message.get("chat") or {}
    if "id" not in chat:
        return None
    actor_id = str(chat["id"])
    if message.get("photo"):
        # Sizes come smallest first
        photo = message["photo"][-1]
        return InboundEvent.from_media(
            actor_id, EventKind.PHOTO, photo["file_id"], photo["file_unique_id"], message.get("caption"),
        )
    if message.get("video"):
        video = message["video"]
        return InboundEvent.from_media(
            actor_id, EventKind.VIDEO, video["file_id"], video["file_unique_id"], message.get("caption"),
        )
    if message.get("text"):
        return InboundEvent.from_text(actor_id, message["text"])
    return None


def send_message_payload(chat_id: str, text: str, html: bool = True) -> Dict[str, Any]:
    """Bot API sendMessage call returned as the webhook response body."""
    payload = {
        "method": "sendMessage",
        "chat_id": chat_id,
        "text": text,
        "disable_web_page_preview": True,
    }
    if html:
        payload["parse_mode"] = "HTML"
    return payload


class TelegramBridge:
    def __init__(self, client: Client, engine: ConversationEngine):
        self.client = client
        self.engine = engine

    def register(self) -> None:
        """Adds the single private-chat handler; everything else is routed by the engine."""
        self.client.add_handler(
            MessageHandler(self.on_message, filters.private & (filters.text | filters.photo | filters.video))
        )
        bridge_logger.info("Telegram message handler registered.")

    async def on_message(self, client: Client, message: Message) -> None:
        event = event_from_message(message)
        if event is None:
            return
        reply = await self.engine.handle(event)
        await self.send(event.actor_id, reply)

    async def send(self, chat_id, reply: Reply) -> None:
        parse_mode = ParseMode.HTML if reply.html else ParseMode.DISABLED
        for chunk in split_message(reply.text):
            try:
                await self._send_chunk(int(chat_id), chunk, parse_mode)
            except RPCError as e:
                bridge_logger.error(f"Failed to send reply to {chat_id}: {e}", exc_info=True)
                return

    async def _send_chunk(self, chat_id: int, text: str, parse_mode: ParseMode) -> None:
        try:
            await self.client.send_message(chat_id, text, parse_mode=parse_mode, disable_web_page_preview=True)
        except FloodWait as e:
            bridge_logger.warning(f"FloodWait sending to {chat_id} (retry in {e.value}s).")
            await asyncio.sleep(e.value)
            await self.client.send_message(chat_id, text, parse_mode=parse_mode, disable_web_page_preview=True)

    async def notify_admin(self, text: str) -> None:
        """Fire-and-forget notice for the admin chat. Failures are logged only."""
        if not config.ADMIN_CHAT_ID:
            return
        await self.send(config.ADMIN_CHAT_ID, Reply(text=text))
