# folio_bot/web/server.py
import asyncio
import html
import logging
from pathlib import Path
from typing import Optional

from aiohttp import web

from folio_bot import config, strings
from folio_bot.database.stores import AccessControlList, ConfigStore, StoreError
from folio_bot.engine.conversation import ConversationEngine
from folio_bot.handlers.telegram_bridge import event_from_update, send_message_payload, split_message
from folio_bot.utils.bot_api import BotApiClient, BotApiError
from folio_bot.utils.logger import AuditAction, AuditLog
from folio_bot.utils.notifier import SSEChannel, UpdateNotifier
from folio_bot.web.app_keys import (
    ACL, AUDIT, BOT_API, CONFIG_STORE, ENGINE, NOTIFIER, NOTIFY_ADMIN, PROJECTOR, VISITOR_NOTICES,
    AdminNotify,
)
from folio_bot.web.middlewares import HEALTH_PATH, block_gate, client_ip, pause_gate, visitor_notice
from folio_bot.web.projector import ContentProjector

web_logger = logging.getLogger(__name__)

WEBHOOK_TOKEN = web.AppKey("webhook_token", str)
PUBLIC_ROOT = web.AppKey("public_root", Path)

SSE_KEEPALIVE = b": keep-alive\n\n"
_VIDEO_KINDS = ("video", "youtube", "vimeo")


async def health_check(request: web.Request) -> web.Response:
    web_logger.debug(f"Health check request received from {request.remote}")
    return web.json_response({"status": "ok"})


async def content(request: web.Request) -> web.Response:
    try:
        document = await request.app[PROJECTOR].build()
    except Exception as e:
        web_logger.error(f"Failed to build content: {e}", exc_info=not isinstance(e, StoreError))
        await request.app[AUDIT].log(AuditAction.API_ERROR, f"/api/content: {e}")
        return web.json_response({"error": "Failed to fetch content"}, status=500)
    return web.json_response(document)


async def sse(request: web.Request) -> web.StreamResponse:
    response = web.StreamResponse(headers={
        "Content-Type": "text/event-stream",
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    })
    await response.prepare(request)
    ip = client_ip(request)

    subscription = request.app[NOTIFIER].subscribe(SSEChannel(response))
    await request.app[AUDIT].log(AuditAction.SSE_CONNECT, f"Client {subscription.channel_id} connected from {ip}")
    try:
        # The notifier drops the channel itself when a write fails
        while not subscription.closed:
            await asyncio.sleep(config.SSE_KEEPALIVE_SECONDS)
            await response.write(SSE_KEEPALIVE)
    except (ConnectionResetError, RuntimeError) as e:
        web_logger.debug(f"SSE client {subscription.channel_id} went away: {e!r}")
    finally:
        subscription.close()
        await request.app[AUDIT].log(AuditAction.SSE_DISCONNECT, f"Client {subscription.channel_id} disconnected")
    return response


async def notify_click(request: web.Request) -> web.Response:
    """Click telemetry from the gallery. Always answers 200."""
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    kind = str(body.get("media_kind") or body.get("mediaType") or "").lower()
    project = str(body.get("project") or "")
    note = str(body.get("note") or body.get("caption") or "")
    ip = client_ip(request) or "unknown"
    if kind in _VIDEO_KINDS:
        action, template, fallback = AuditAction.VIDEO_CLICK, strings.VIDEO_CLICK_NOTICE, "Video"
    else:
        action, template, fallback = AuditAction.PHOTO_CLICK, strings.PHOTO_CLICK_NOTICE, "Image"

    await request.app[AUDIT].log(action, f"IP: {ip}, Project: {project}, Note: {note}")
    text = template.format(
        project=html.escape(project or fallback), note=html.escape(note or "N/A"), ip=html.escape(ip),
    )
    try:
        await request.app[NOTIFY_ADMIN](text)
    except Exception as e:
        web_logger.error(f"Click notice failed: {e}", exc_info=True)
    return web.json_response({"ok": True})


async def telegram_webhook(request: web.Request) -> web.Response:
    engine = request.app[ENGINE]
    if engine is None or request.match_info["token"] != request.app[WEBHOOK_TOKEN]:
        raise web.HTTPNotFound()
    try:
        update = await request.json()
    except ValueError:
        web_logger.warning("Webhook received a body that is not JSON.")
        return web.json_response({})

    event = event_from_update(update) if isinstance(update, dict) else None
    if event is None:
        return web.json_response({})

    reply = await engine.handle(event)
    chunks = split_message(reply.text)
    if len(chunks) == 1:
        return web.json_response(send_message_payload(event.actor_id, reply.text, reply.html))

    # Only one method call fits in a webhook response; long replies go out in order through the Bot API
    bot_api = request.app[BOT_API]
    if bot_api is not None:
        for chunk in chunks:
            try:
                await bot_api.send_message(event.actor_id, chunk, reply.html)
            except BotApiError as e:
                web_logger.error(f"Failed to send reply chunk to {event.actor_id}: {e}")
                break
    return web.json_response({})


async def static_files(request: web.Request) -> web.StreamResponse:
    """Files under PUBLIC_DIR; unknown paths fall back to index.html for the single-page frontend."""
    root = request.app[PUBLIC_ROOT]
    tail = request.match_info.get("tail", "")
    candidate = (root / tail).resolve()
    if tail and candidate.is_file() and candidate.is_relative_to(root):
        return web.FileResponse(candidate)
    index = root / "index.html"
    if index.is_file():
        return web.FileResponse(index)
    raise web.HTTPNotFound()


def create_app(
    config_store: ConfigStore,
    acl: AccessControlList,
    audit: AuditLog,
    notifier: UpdateNotifier,
    projector: ContentProjector,
    notify_admin: AdminNotify,
    engine: Optional[ConversationEngine] = None,
    bot_api: Optional[BotApiClient] = None,
    webhook_token: Optional[str] = None,
    public_dir: Optional[str] = None,
) -> web.Application:
    """Public site, live updates, click telemetry and (in webhook mode) the Telegram control channel."""
    app = web.Application(middlewares=[pause_gate, block_gate, visitor_notice])
    app[CONFIG_STORE] = config_store
    app[ACL] = acl
    app[AUDIT] = audit
    app[NOTIFIER] = notifier
    app[PROJECTOR] = projector
    app[NOTIFY_ADMIN] = notify_admin
    app[ENGINE] = engine
    app[BOT_API] = bot_api
    app[WEBHOOK_TOKEN] = webhook_token or config.BOT_TOKEN or ""
    app[PUBLIC_ROOT] = Path(public_dir or config.PUBLIC_DIR).resolve()
    app[VISITOR_NOTICES] = {}

    app.router.add_get(HEALTH_PATH, health_check)
    app.router.add_get("/api/content", content)
    app.router.add_get("/api/sse", sse)
    app.router.add_post("/api/notify-click", notify_click)
    app.router.add_post(config.WEBHOOK_PATH_PREFIX + "{token}", telegram_webhook)
    app.router.add_get("/{tail:.*}", static_files)
    return app
