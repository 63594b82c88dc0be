import asyncio
from types import SimpleNamespace

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from pyrogram.enums import ParseMode
from pyrogram.errors import FloodWait

from folio_bot.engine.events import EventKind, Reply
from folio_bot.handlers.telegram_bridge import TelegramBridge, event_from_message, event_from_update, split_message
from folio_bot.utils.bot_api import BotApiClient, BotApiError, StaleFileError
from tests.harness import run


# --- split_message ---

def test_short_text_is_one_chunk():
    assert split_message("hello", limit=10) == ["hello"]


def test_split_on_line_boundaries():
    text = "\n".join(["aaaa", "bbbb", "cccc"])
    assert split_message(text, limit=9) == ["aaaa\nbbbb", "cccc"]


def test_oversized_line_is_hard_cut():
    chunks = split_message("x" * 25, limit=10)
    assert chunks == ["x" * 10, "x" * 10, "x" * 5]


def test_no_chunk_exceeds_limit():
    text = "\n".join(f"line {i} " * (i % 7 + 1) for i in range(200))
    chunks = split_message(text, limit=100)
    assert all(len(chunk) <= 100 for chunk in chunks)
    assert "".join(chunks).replace("\n", "") == text.replace("\n", "")


# --- Inbound conversion ---

def test_event_from_text_update():
    event = event_from_update({"message": {"chat": {"id": 42}, "text": "/setname Jane"}})
    assert event.actor_id == "42"
    assert event.kind == EventKind.COMMAND
    assert event.command == "setname"
    assert event.text == "Jane"


def test_event_from_photo_update_uses_largest_size():
    update = {"message": {
        "chat": {"id": 42},
        "caption": "stall Expo",
        "photo": [
            {"file_id": "small", "file_unique_id": "u-small"},
            {"file_id": "large", "file_unique_id": "u-large"},
        ],
    }}
    event = event_from_update(update)
    assert event.kind == EventKind.PHOTO
    assert event.media.file_id == "large"
    assert event.media.file_unique_id == "u-large"
    assert event.text == "stall Expo"


@pytest.mark.parametrize("update", [
    {"update_id": 1},
    {"message": {"chat": {"id": 1}, "sticker": {}}},
    {"message": {"text": "no chat"}},
    {"message": "not a dict"},
    {"edited_message": {"chat": {"id": 1}, "text": "/pause"}},
])
def test_updates_without_usable_message(update):
    assert event_from_update(update) is None


def test_event_from_pyrogram_video_message():
    message = SimpleNamespace(
        chat=SimpleNamespace(id=42),
        photo=None,
        video=SimpleNamespace(file_id="vid", file_unique_id="u-vid"),
        text=None,
        caption=None,
    )
    event = event_from_message(message)
    assert event.kind == EventKind.VIDEO
    assert event.media.file_unique_id == "u-vid"
    assert event.text == ""


# --- Outbound through pyrogram ---

class _RecordingClient:
    def __init__(self, flood_first: bool = False):
        self.sent = []
        self.flood_first = flood_first

    async def send_message(self, chat_id, text, parse_mode=None, disable_web_page_preview=None):
        if self.flood_first:
            self.flood_first = False
            raise FloodWait(value=0)
        self.sent.append((chat_id, text, parse_mode))


def test_send_chunks_long_replies():
    client = _RecordingClient()
    bridge = TelegramBridge(client, engine=None)
    run(bridge.send("42", Reply(text="a" * 5000)))
    assert [len(text) for _, text, _ in client.sent] == [4096, 904]
    assert all(chat_id == 42 and mode == ParseMode.HTML for chat_id, _, mode in client.sent)


def test_send_retries_once_after_flood_wait():
    client = _RecordingClient(flood_first=True)
    bridge = TelegramBridge(client, engine=None)
    run(bridge.send("42", Reply(text="hi", html=False)))
    assert client.sent == [(42, "hi", ParseMode.DISABLED)]


# --- Bot API client ---

async def _fake_telegram(handler):
    app = web.Application()
    app.router.add_post("/botTOKEN/{method}", handler)
    server = TestServer(app)
    await server.start_server()
    return server


def test_get_file_url():
    async def handler(request):
        body = await request.json()
        if body["file_id"] == "gone":
            return web.json_response({"ok": False, "description": "Bad Request: wrong file_id"}, status=400)
        if body["file_id"] == "busy":
            return web.json_response({"ok": False, "description": "Too Many Requests"}, status=429)
        return web.json_response({"ok": True, "result": {"file_path": "photos/file_1.jpg"}})

    async def scenario():
        server = await _fake_telegram(handler)
        base = str(server.make_url("")).rstrip("/")
        client = BotApiClient("TOKEN", base_url=base)
        try:
            url = await client.get_file_url("ok")
            with pytest.raises(StaleFileError):
                await client.get_file_url("gone")
            with pytest.raises(BotApiError) as busy:
                await client.get_file_url("busy")
            return base, url, busy.value
        finally:
            await client.close()
            await server.close()

    base, url, busy = run(scenario())
    assert url == f"{base}/file/botTOKEN/photos/file_1.jpg"
    assert busy.status == 429
    assert not isinstance(busy, StaleFileError)


def test_send_message_reports_api_errors():
    async def handler(request):
        return web.json_response({"ok": False, "description": "Forbidden: bot was blocked by the user"}, status=403)

    async def scenario():
        server = await _fake_telegram(handler)
        client = BotApiClient("TOKEN", base_url=str(server.make_url("")))
        try:
            await client.send_message(42, "hi")
        finally:
            await client.close()
            await server.close()

    with pytest.raises(BotApiError, match="blocked by the user"):
        run(scenario())


def test_timeout_becomes_bot_api_error():
    async def handler(request):
        await asyncio.sleep(1)
        return web.json_response({"ok": True, "result": {"file_path": "late.jpg"}})

    async def scenario():
        server = await _fake_telegram(handler)
        client = BotApiClient("TOKEN", base_url=str(server.make_url("")), timeout=0.2)
        try:
            with pytest.raises(BotApiError) as late:
                await client.get_file_url("slow")
            return late.value
        finally:
            await client.close()
            await server.close()

    assert not isinstance(run(scenario()), StaleFileError)
