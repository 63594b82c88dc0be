# folio_bot/web/middlewares.py
import html
import time
import logging
from typing import Optional

from aiohttp import web

from folio_bot import config, strings
from folio_bot.database.models import SiteStatus
from folio_bot.database.stores import StoreError
from folio_bot.utils.logger import AuditAction
from folio_bot.web.app_keys import ACL, AUDIT, CONFIG_STORE, NOTIFY_ADMIN, VISITOR_NOTICES

web_logger = logging.getLogger(__name__)

HEALTH_PATH = "/healthz"
_PAGE_VIEW_PATHS = ("/", "/index.html")


def client_ip(request: web.Request) -> Optional[str]:
    """First X-Forwarded-For hop behind a trusted proxy, the socket peer otherwise."""
    if config.TRUST_PROXY:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.remote


def _is_control_channel(path: str) -> bool:
    return path.startswith(config.WEBHOOK_PATH_PREFIX)


@web.middleware
async def pause_gate(request: web.Request, handler):
    if _is_control_channel(request.path) or request.path == HEALTH_PATH:
        return await handler(request)
    try:
        status = await request.app[CONFIG_STORE].site_status()
    except StoreError as e:
        # Unknown status is treated as live
        web_logger.error(f"Could not read site status: {e}")
        status = SiteStatus.LIVE
    if status == SiteStatus.PAUSED:
        await request.app[AUDIT].log(AuditAction.SITE_PAUSED, f"IP: {client_ip(request)}, Path: {request.path}")
        return web.Response(status=503, text=strings.MAINTENANCE_PAGE, content_type="text/html")
    return await handler(request)


@web.middleware
async def block_gate(request: web.Request, handler):
    if _is_control_channel(request.path):
        return await handler(request)
    ip = client_ip(request)
    if request.app[ACL].contains(ip):
        await request.app[AUDIT].log(AuditAction.BLOCKED_ACCESS, f"IP: {ip}, Path: {request.path}")
        return web.Response(status=403, text=strings.FORBIDDEN)
    return await handler(request)


@web.middleware
async def visitor_notice(request: web.Request, handler):
    """Tells the admin about a page view, at most once per IP per VISITOR_NOTICE_TTL seconds."""
    if request.method == "GET" and request.path in _PAGE_VIEW_PATHS:
        ip = client_ip(request)
        seen = request.app[VISITOR_NOTICES]
        now = time.monotonic()
        for old_ip in [k for k, at in seen.items() if now - at >= config.VISITOR_NOTICE_TTL]:
            del seen[old_ip]
        if ip and ip not in seen:
            seen[ip] = now
            await request.app[AUDIT].log(AuditAction.PAGE_VIEW, f"IP: {ip}")
            try:
                await request.app[NOTIFY_ADMIN](strings.PAGE_VIEW_NOTICE.format(ip=html.escape(ip)))
            except Exception as e:
                web_logger.error(f"Page view notice failed for {ip}: {e}", exc_info=True)
    return await handler(request)
