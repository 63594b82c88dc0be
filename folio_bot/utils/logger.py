# folio_bot/utils/logger.py
import sys
import logging
from enum import Enum
from typing import Optional

from pymongo.errors import PyMongoError

from folio_bot import config
from folio_bot.database.models import utcnow

LOG_FORMAT = "[%(asctime)s - %(levelname)s] - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

LOGGER = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Console logging always; a file handler too when LOG_FILE is set."""
    level_name = (level or config.LOG_LEVEL).upper()
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = log_file or config.LOG_FILE
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handlers.append(file_handler)
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
    )
    # Set specific log levels for noisy libraries
    for noisy in ("pyrogram", "pymongo", "motor", "aiohttp.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class AuditAction(str, Enum):
    SERVER_START = "SERVER_START"
    COMMAND_RECEIVED = "COMMAND_RECEIVED"
    UNAUTHORIZED_ACCESS = "UNAUTHORIZED_ACCESS"
    CONFIG_UPDATE = "CONFIG_UPDATE"
    PROFILE_PHOTO_UPDATE = "PROFILE_PHOTO_UPDATE"
    SITE_PAUSE = "SITE_PAUSE"
    SITE_RESUME = "SITE_RESUME"
    MEDIA_ADD_PHOTO = "MEDIA_ADD_PHOTO"
    MEDIA_ADD_VIDEO = "MEDIA_ADD_VIDEO"
    MEDIA_ADD_LINK = "MEDIA_ADD_LINK"
    MEDIA_ADD_BATCH = "MEDIA_ADD_BATCH"
    MEDIA_EDIT = "MEDIA_EDIT"
    MEDIA_DELETE = "MEDIA_DELETE"
    MEDIA_DELETE_STALE = "MEDIA_DELETE_STALE"
    IP_BLOCK = "IP_BLOCK"
    IP_UNBLOCK = "IP_UNBLOCK"
    SITE_PAUSED = "SITE_PAUSED"
    BLOCKED_ACCESS = "BLOCKED_ACCESS"
    SSE_CONNECT = "SSE_CONNECT"
    SSE_DISCONNECT = "SSE_DISCONNECT"
    PAGE_VIEW = "PAGE_VIEW"
    PHOTO_CLICK = "PHOTO_CLICK"
    VIDEO_CLICK = "VIDEO_CLICK"
    FILE_LINK_ERROR = "FILE_LINK_ERROR"
    API_ERROR = "API_ERROR"


class AuditLog:
    """Append-only audit trail in the audit_log collection."""

    def __init__(self, db):
        self._collection = db[config.AUDIT_LOG_COLLECTION]

    async def log(self, action: AuditAction, details: str = "") -> None:
        LOGGER.info(f"AUDIT: {action.value} - {details}")
        try:
            await self._collection.insert_one({
                "action": action.value,
                "details": details,
                "timestamp": utcnow(),
            })
        except PyMongoError as e:
            # The audit trail must never take a request or a dialog down with it
            LOGGER.error(f"Audit log write failed for {action.value}: {e}")
