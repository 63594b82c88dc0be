# folio_bot/web/projector.py
"""
Builds the public /api/content document from site config and the media catalog.

Telegram file ids become download URLs through the Bot API. Items whose file
Telegram no longer knows are dropped and evicted from the catalog in one sweep.
"""
import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Protocol

from folio_bot import config
from folio_bot.database.models import ConfigKey, LinkRef, MediaRecord, Provider
from folio_bot.database.stores import ConfigStore, MediaCatalog
from folio_bot.utils.bot_api import BotApiError, StaleFileError
from folio_bot.utils.link_resolver import embed_url, thumbnail_url, watch_url
from folio_bot.utils.logger import AuditAction, AuditLog

projector_logger = logging.getLogger(__name__)


class FileResolver(Protocol):
    async def get_file_url(self, file_id: str) -> str: ...


def whatsapp_link(phone: Optional[str]) -> Optional[str]:
    digits = re.sub(r"\D", "", phone or "")
    return f"https://wa.me/{digits}" if digits else None


class ContentProjector:
    def __init__(self, config_store: ConfigStore, catalog: MediaCatalog, files: FileResolver, audit: AuditLog):
        self.config_store = config_store
        self.catalog = catalog
        self.files = files
        self.audit = audit

    async def _file_url(self, file_id: str) -> Optional[str]:
        """None when the file cannot be resolved right now. StaleFileError is left to the caller."""
        try:
            return await self.files.get_file_url(file_id)
        except StaleFileError:
            raise
        except BotApiError as e:
            projector_logger.warning(f"Could not get URL for file_id {file_id}: {e}")
            await self.audit.log(AuditAction.FILE_LINK_ERROR, f"FileID: {file_id}, Error: {e}")
            return None

    async def _project_item(self, record: MediaRecord, stale: List[str]) -> Optional[Dict[str, Any]]:
        item = {
            "id": record.unique_id,
            "type": record.kind.value,
            "category": record.category,
            "project_name": record.project_name,
            "note": record.note,
            "created_at": record.created_at.isoformat(),
        }
        if record.is_external():
            link = LinkRef(provider=Provider(record.kind.value), external_id=record.source_ref)
            item.update(url=embed_url(link), watch_url=watch_url(link), thumbnail_url=thumbnail_url(link))
            return item
        try:
            url = await self._file_url(record.source_ref)
        except StaleFileError as e:
            projector_logger.warning(f"Media {record.unique_id} points at a stale file: {e}")
            await self.audit.log(AuditAction.FILE_LINK_ERROR, f"FileID: {record.source_ref}, Error: {e}")
            stale.append(record.unique_id)
            return None
        if url is None:
            return None
        item["url"] = url
        return item

    async def _profile_photo_url(self, file_id: Optional[str]) -> str:
        if not file_id:
            return config.PLACEHOLDER_PHOTO_URL
        try:
            url = await self._file_url(file_id)
        except StaleFileError as e:
            projector_logger.warning(f"Profile photo file is stale: {e}")
            url = None
        return url or config.PLACEHOLDER_PHOTO_URL

    async def build(self) -> Dict[str, Any]:
        site = await self.config_store.get_all()
        records = await self.catalog.list_all()

        stale: List[str] = []
        items = await asyncio.gather(*(self._project_item(record, stale) for record in records))
        if stale:
            evicted = await self.catalog.evict(stale)
            projector_logger.info(f"Evicted {evicted} stale media item(s).")

        phone = site.get(ConfigKey.CONTACT_PHONE.value) or ""
        return {
            "profile": {
                "name": site.get(ConfigKey.PROFILE_NAME.value) or "",
                "title": site.get(ConfigKey.PROFILE_TITLE.value) or "",
                "description": site.get(ConfigKey.PROFILE_DESC.value) or "",
                "photo_url": await self._profile_photo_url(site.get(ConfigKey.PROFILE_PHOTO.value)),
            },
            "contacts": {
                "phone": phone,
                "whatsapp_link": whatsapp_link(phone),
                "call": site.get(ConfigKey.CONTACT_CALL.value) or "",
                "email": site.get(ConfigKey.CONTACT_EMAIL.value) or "",
            },
            "media": [item for item in items if item is not None],
        }
