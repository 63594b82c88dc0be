# folio_bot/database/stores.py
"""
Persistence for everything the admin can change.

Every mutating method is awaited by the caller before it replies, writes one
audit entry, and (for publicly visible data) signals the UpdateNotifier once.
Driver errors come out as StoreError carrying the driver's message.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from folio_bot import config
from folio_bot.database.models import (
    ConfigKey, ConversationState, EditableField, MediaKind, MediaRecord, SiteStatus, utcnow,
)
from folio_bot.utils.logger import AuditAction, AuditLog
from folio_bot.utils.notifier import UpdateNotifier

db_logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A persistence call failed. str(error) is the driver's own message."""


class MediaNotFound(StoreError):
    def __init__(self, unique_id: str):
        super().__init__(f"Media {unique_id} not found")
        self.unique_id = unique_id


@contextmanager
def translate_errors(operation: str):
    try:
        yield
    except PyMongoError as e:
        db_logger.error(f"{operation} failed: {e}", exc_info=True)
        raise StoreError(str(e)) from e


class ConfigStore:
    def __init__(self, db, audit: AuditLog, notifier: UpdateNotifier):
        self._collection = db[config.SITE_CONFIG_COLLECTION]
        self._audit = audit
        self._notifier = notifier

    async def get(self, key: ConfigKey) -> Optional[str]:
        with translate_errors(f"Reading config {key.value}"):
            doc = await self._collection.find_one({"_id": key.value})
        return doc.get("value") if doc else None

    async def get_all(self) -> Dict[str, str]:
        with translate_errors("Reading site config"):
            docs = await self._collection.find({}).to_list(length=None)
        return {doc["_id"]: doc.get("value") for doc in docs}

    async def site_status(self) -> SiteStatus:
        value = await self.get(ConfigKey.SITE_STATUS)
        return SiteStatus.PAUSED if value == SiteStatus.PAUSED.value else SiteStatus.LIVE

    async def upsert(self, key: ConfigKey, value: str, action: AuditAction = AuditAction.CONFIG_UPDATE) -> None:
        with translate_errors(f"Updating config {key.value}"):
            await self._collection.update_one({"_id": key.value}, {"$set": {"value": value}}, upsert=True)
        await self._audit.log(action, f"{key.value} = {value}")
        await self._notifier.publish()

    async def seed_defaults(self, defaults: Dict[str, str]) -> None:
        """Inserts missing keys only; values the admin already set are left alone."""
        with translate_errors("Seeding site config"):
            for key, value in defaults.items():
                await self._collection.update_one({"_id": key}, {"$setOnInsert": {"value": value}}, upsert=True)
        db_logger.info(f"Site config defaults ensured ({len(defaults)} keys).")


_ADD_ACTIONS = {
    MediaKind.PHOTO: AuditAction.MEDIA_ADD_PHOTO,
    MediaKind.VIDEO: AuditAction.MEDIA_ADD_VIDEO,
    MediaKind.YOUTUBE: AuditAction.MEDIA_ADD_LINK,
    MediaKind.VIMEO: AuditAction.MEDIA_ADD_LINK,
}


def _upsert_document(record: MediaRecord) -> dict:
    doc = record.to_mongo()
    created_at = doc.pop("created_at")
    doc.pop("_id")
    return {"$set": doc, "$setOnInsert": {"created_at": created_at}}


class MediaCatalog:
    def __init__(self, db, audit: AuditLog, notifier: UpdateNotifier):
        self._db = db
        self._collection = db[config.MEDIA_COLLECTION]
        self._audit = audit
        self._notifier = notifier

    async def get(self, unique_id: str) -> Optional[MediaRecord]:
        with translate_errors(f"Reading media {unique_id}"):
            doc = await self._collection.find_one({"_id": unique_id})
        return MediaRecord.model_validate(doc) if doc else None

    async def contains(self, unique_id: str) -> bool:
        return await self.get(unique_id) is not None

    async def list_all(self) -> List[MediaRecord]:
        """Newest first."""
        with translate_errors("Listing media"):
            docs = await self._collection.find({}).sort("created_at", DESCENDING).to_list(length=None)
        records = []
        for doc in docs:
            try:
                records.append(MediaRecord.model_validate(doc))
            except ValidationError as e:
                db_logger.warning(f"Skipping malformed media document {doc.get('_id')}: {e}")
        return records

    async def upsert(self, record: MediaRecord) -> None:
        with translate_errors(f"Upserting media {record.unique_id}"):
            await self._collection.update_one({"_id": record.unique_id}, _upsert_document(record), upsert=True)
        await self._audit.log(
            _ADD_ACTIONS[record.kind],
            f"ID: {record.unique_id}, Category: {record.category}, Project: {record.project_name}",
        )
        await self._notifier.publish()

    async def upsert_many(self, records: Iterable[MediaRecord]) -> int:
        """
        All-or-nothing upsert inside one multi-document transaction.
        Needs a replica set (or Atlas); a failing row aborts the whole batch.
        """
        records = list(records)
        if not records:
            return 0
        with translate_errors(f"Batch upsert of {len(records)} media"):
            async with await self._db.client.start_session() as session:
                async with session.start_transaction():
                    for record in records:
                        await self._collection.update_one(
                            {"_id": record.unique_id}, _upsert_document(record), upsert=True, session=session,
                        )
        await self._audit.log(
            AuditAction.MEDIA_ADD_BATCH,
            f"{len(records)} items, Category: {records[0].category}, Project: {records[0].project_name}",
        )
        await self._notifier.publish()
        return len(records)

    async def update_field(self, unique_id: str, field: EditableField, value: str) -> None:
        with translate_errors(f"Updating {field.value} of media {unique_id}"):
            result = await self._collection.update_one({"_id": unique_id}, {"$set": {field.value: value}})
        if result.matched_count == 0:
            raise MediaNotFound(unique_id)
        await self._audit.log(AuditAction.MEDIA_EDIT, f"ID: {unique_id}, {field.value} = {value}")
        await self._notifier.publish()

    async def delete(self, unique_id: str) -> bool:
        with translate_errors(f"Deleting media {unique_id}"):
            result = await self._collection.delete_one({"_id": unique_id})
        if result.deleted_count == 0:
            return False
        await self._audit.log(AuditAction.MEDIA_DELETE, f"ID: {unique_id}")
        await self._notifier.publish()
        return True

    async def evict(self, unique_ids: Iterable[str]) -> int:
        """Removes records whose backing file is gone. One signal for the whole sweep."""
        unique_ids = list(dict.fromkeys(unique_ids))
        if not unique_ids:
            return 0
        with translate_errors(f"Evicting {len(unique_ids)} stale media"):
            result = await self._collection.delete_many({"_id": {"$in": unique_ids}})
        if result.deleted_count:
            await self._audit.log(AuditAction.MEDIA_DELETE_STALE, f"IDs: {', '.join(unique_ids)}")
            await self._notifier.publish()
        return result.deleted_count


class AccessControlList:
    """Blocked IPs. Lookups hit the in-memory set loaded at startup; writes go to Mongo first."""

    def __init__(self, db, audit: AuditLog):
        self._collection = db[config.BLOCKED_IPS_COLLECTION]
        self._audit = audit
        self._blocked = set()

    async def load(self) -> int:
        with translate_errors("Loading blocked IPs"):
            docs = await self._collection.find({}).to_list(length=None)
        self._blocked = {doc["_id"] for doc in docs}
        db_logger.info(f"Loaded {len(self._blocked)} blocked IPs.")
        return len(self._blocked)

    def contains(self, ip: Optional[str]) -> bool:
        return bool(ip) and ip in self._blocked

    def list_all(self) -> List[str]:
        return sorted(self._blocked)

    async def add(self, ip: str) -> bool:
        """Returns False when the IP was already blocked."""
        with translate_errors(f"Blocking {ip}"):
            result = await self._collection.update_one(
                {"_id": ip}, {"$setOnInsert": {"blocked_at": utcnow()}}, upsert=True,
            )
        self._blocked.add(ip)
        await self._audit.log(AuditAction.IP_BLOCK, f"IP: {ip}")
        return result.upserted_id is not None

    async def remove(self, ip: str) -> bool:
        with translate_errors(f"Unblocking {ip}"):
            result = await self._collection.delete_one({"_id": ip})
        self._blocked.discard(ip)
        if result.deleted_count == 0:
            return False
        await self._audit.log(AuditAction.IP_UNBLOCK, f"IP: {ip}")
        return True


class ConversationStore:
    """One ConversationState document per actor. Idle is stored as no document."""

    def __init__(self, db):
        self._collection = db[config.STATE_COLLECTION_NAME]

    async def load(self, actor_id: str) -> ConversationState:
        with translate_errors(f"Loading state for {actor_id}"):
            doc = await self._collection.find_one({"_id": actor_id})
        if not doc:
            return ConversationState.idle(actor_id)
        try:
            return ConversationState.from_mongo(doc)
        except (ValidationError, ValueError) as e:
            # Leftover from an older schema or a hand edit; start the actor over
            db_logger.warning(f"Discarding unreadable state for {actor_id}: {e}")
            await self.clear(actor_id)
            return ConversationState.idle(actor_id)

    async def save(self, state: ConversationState) -> None:
        if state.is_idle:
            await self.clear(state.actor_id)
            return
        doc = state.to_mongo()
        doc.pop("_id")
        doc["updated_at"] = utcnow()
        with translate_errors(f"Saving state for {state.actor_id}"):
            await self._collection.update_one({"_id": state.actor_id}, {"$set": doc}, upsert=True)
        db_logger.debug(f"State for {state.actor_id} -> {state.step.value}")

    async def clear(self, actor_id: str) -> None:
        with translate_errors(f"Clearing state for {actor_id}"):
            await self._collection.delete_one({"_id": actor_id})
