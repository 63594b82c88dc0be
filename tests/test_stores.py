from datetime import datetime, timedelta, timezone

import pytest

from folio_bot import config
from folio_bot.database.models import (
    ConfigKey, ConversationState, EditableField, LinkRef, MediaKind, MediaRecord, Provider, SiteStatus, Step,
)
from folio_bot.database.mongo_db import ensure_indexes
from folio_bot.database.stores import MediaNotFound, StoreError
from folio_bot.utils.logger import AuditAction
from tests.fakes import RecordingChannel
from tests.harness import run


def _photo(unique_id: str, created_at: datetime = None, **fields) -> MediaRecord:
    return MediaRecord(
        unique_id=unique_id,
        source_ref=f"file-{unique_id}",
        kind=MediaKind.PHOTO,
        created_at=created_at or datetime.now(timezone.utc),
        **fields,
    )


def _link(video_id: str) -> LinkRef:
    return LinkRef(provider=Provider.VIMEO, external_id=video_id)


# --- ConfigStore ---

def test_seed_defaults_keeps_existing_values(harness):
    async def scenario():
        await harness.config_store.upsert(ConfigKey.PROFILE_NAME, "Jane Doe")
        await harness.config_store.seed_defaults(config.DEFAULT_SITE_CONFIG)
        site = await harness.config_store.get_all()
        assert site["profile_name"] == "Jane Doe"
        assert site["site_status"] == "live"
        assert set(site) == set(config.DEFAULT_SITE_CONFIG)

    run(scenario())


def test_config_upsert_audits_and_signals_once(harness):
    channel = RecordingChannel()
    harness.notifier.subscribe(channel)

    async def scenario():
        await harness.config_store.upsert(ConfigKey.SITE_STATUS, "paused", action=AuditAction.SITE_PAUSE)
        assert await harness.config_store.site_status() == SiteStatus.PAUSED

    run(scenario())
    assert harness.audit_actions() == ["SITE_PAUSE"]
    assert len(channel.sent) == 1


def test_config_error_carries_driver_message(harness):
    collection = harness.collection(config.SITE_CONFIG_COLLECTION)
    collection.fail_on.add("update_one")
    collection.fail_message = "not primary"

    with pytest.raises(StoreError, match="not primary"):
        run(harness.config_store.upsert(ConfigKey.PROFILE_NAME, "x"))
    assert harness.notifier.publish_count == 0


# --- MediaCatalog ---

def test_list_all_is_newest_first(harness):
    now = datetime.now(timezone.utc)

    async def scenario():
        await harness.catalog.upsert(_photo("old", now - timedelta(days=2)))
        await harness.catalog.upsert(_photo("new", now))
        await harness.catalog.upsert(_photo("mid", now - timedelta(days=1)))
        return await harness.catalog.list_all()

    assert [r.unique_id for r in run(scenario())] == ["new", "mid", "old"]


def test_reupsert_keeps_created_at(harness):
    first = datetime(2024, 1, 1, tzinfo=timezone.utc)

    async def scenario():
        await harness.catalog.upsert(_photo("p1", first, project_name="Before"))
        await harness.catalog.upsert(_photo("p1", project_name="After"))
        return await harness.catalog.get("p1")

    record = run(scenario())
    assert record.project_name == "After"
    assert record.created_at == first


def test_upsert_audit_action_follows_kind(harness):
    async def scenario():
        await harness.catalog.upsert(_photo("p1"))
        await harness.catalog.upsert(MediaRecord.from_link(_link("1"), "event", "Launch"))

    run(scenario())
    assert harness.audit_actions() == ["MEDIA_ADD_PHOTO", "MEDIA_ADD_LINK"]


def test_upsert_many_commits_all_and_signals_once(harness):
    channel = RecordingChannel()
    harness.notifier.subscribe(channel)
    records = [MediaRecord.from_link(_link(str(i)), "stall", "Expo") for i in range(3)]

    count = run(harness.catalog.upsert_many(records))

    assert count == 3
    assert set(harness.collection(config.MEDIA_COLLECTION).docs) == {"vimeo_0", "vimeo_1", "vimeo_2"}
    assert harness.db.committed_transactions == 1
    assert harness.audit_actions() == ["MEDIA_ADD_BATCH"]
    assert len(channel.sent) == 1


def test_upsert_many_is_all_or_nothing(harness):
    media = harness.collection(config.MEDIA_COLLECTION)
    media.fail_ids.add("vimeo_2")
    channel = RecordingChannel()
    harness.notifier.subscribe(channel)
    records = [MediaRecord.from_link(_link(str(i)), "stall", "Expo") for i in range(4)]

    with pytest.raises(StoreError):
        run(harness.catalog.upsert_many(records))

    assert media.docs == {}
    assert harness.db.aborted_transactions == 1
    assert channel.sent == []
    assert "MEDIA_ADD_BATCH" not in harness.audit_actions()


def test_upsert_many_of_nothing_is_a_no_op(harness):
    assert run(harness.catalog.upsert_many([])) == 0
    assert harness.notifier.publish_count == 0


def test_update_field_of_missing_media_raises(harness):
    with pytest.raises(MediaNotFound):
        run(harness.catalog.update_field("ghost", EditableField.NOTE, "x"))
    assert harness.notifier.publish_count == 0


def test_update_field_changes_only_that_field(harness):
    async def scenario():
        await harness.catalog.upsert(_photo("p1", project_name="Expo", note="raw"))
        await harness.catalog.update_field("p1", EditableField.PROJECT_NAME, "Expo 2025")
        return await harness.catalog.get("p1")

    record = run(scenario())
    assert record.project_name == "Expo 2025"
    assert record.note == "raw"


def test_delete_reports_whether_anything_was_removed(harness):
    async def scenario():
        await harness.catalog.upsert(_photo("p1"))
        published = harness.notifier.publish_count
        assert await harness.catalog.delete("p1") is True
        assert await harness.catalog.delete("p1") is False
        return harness.notifier.publish_count - published

    assert run(scenario()) == 1


def test_evict_removes_listed_ids_with_one_signal(harness):
    async def scenario():
        for uid in ("a", "b", "c"):
            await harness.catalog.upsert(_photo(uid))
        before = harness.notifier.publish_count
        evicted = await harness.catalog.evict(["a", "c", "a"])
        return evicted, harness.notifier.publish_count - before

    evicted, signals = run(scenario())
    assert evicted == 2
    assert signals == 1
    assert set(harness.collection(config.MEDIA_COLLECTION).docs) == {"b"}
    assert harness.audit_actions()[-1] == "MEDIA_DELETE_STALE"


# --- AccessControlList ---

def test_acl_add_remove_and_reload(harness):
    async def scenario():
        assert await harness.acl.add("203.0.113.7") is True
        assert await harness.acl.add("203.0.113.7") is False
        assert harness.acl.contains("203.0.113.7")
        assert await harness.acl.remove("198.51.100.1") is False
        await harness.acl.add("198.51.100.1")
        assert await harness.acl.remove("198.51.100.1") is True
        await harness.acl.load()

    run(scenario())
    assert harness.acl.list_all() == ["203.0.113.7"]
    assert not harness.acl.contains(None)


def test_acl_changes_do_not_signal(harness):
    run(harness.acl.add("203.0.113.7"))
    assert harness.notifier.publish_count == 0


# --- ConversationStore ---

def test_missing_state_loads_as_idle(harness):
    state = run(harness.conversations.load("nobody"))
    assert state.is_idle


def test_idle_state_is_stored_as_no_document(harness):
    async def scenario():
        await harness.conversations.save(ConversationState.idle("1").advance(Step.AWAITING_NAME))
        assert "1" in harness.state_docs()
        await harness.conversations.save(ConversationState.idle("1"))

    run(scenario())
    assert harness.state_docs() == {}


def test_unreadable_state_is_discarded(harness):
    harness.state_docs()["1"] = {"_id": "1", "step": "awaiting_single_project", "context": {"bogus": True}}
    state = run(harness.conversations.load("1"))
    assert state.is_idle
    assert harness.state_docs() == {}


# --- Indexes ---

def test_ensure_indexes(harness):
    run(ensure_indexes(harness.db))
    assert harness.collection(config.MEDIA_COLLECTION).indexes
    assert len(harness.collection(config.AUDIT_LOG_COLLECTION).indexes) == 2
