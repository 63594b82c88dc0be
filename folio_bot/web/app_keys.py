# folio_bot/web/app_keys.py
from typing import Awaitable, Callable, Optional

from aiohttp import web

from folio_bot.database.stores import AccessControlList, ConfigStore
from folio_bot.engine.conversation import ConversationEngine
from folio_bot.utils.bot_api import BotApiClient
from folio_bot.utils.logger import AuditLog
from folio_bot.utils.notifier import UpdateNotifier
from folio_bot.web.projector import ContentProjector

AdminNotify = Callable[[str], Awaitable[None]]

CONFIG_STORE = web.AppKey("config_store", ConfigStore)
ACL = web.AppKey("acl", AccessControlList)
AUDIT = web.AppKey("audit", AuditLog)
NOTIFIER = web.AppKey("notifier", UpdateNotifier)
PROJECTOR = web.AppKey("projector", ContentProjector)
NOTIFY_ADMIN = web.AppKey("notify_admin", AdminNotify)
BOT_API = web.AppKey("bot_api", Optional[BotApiClient])
# None outside webhook mode
ENGINE = web.AppKey("engine", Optional[ConversationEngine])
VISITOR_NOTICES = web.AppKey("visitor_notices", dict)
