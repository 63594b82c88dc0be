import pytest
from pydantic import ValidationError

from folio_bot.database.models import (
    STEP_CONTEXT, BatchLinksContext, ConversationState, EditableField, EditFieldContext, EditTargetContext,
    LinkRef, MediaKind, MediaRecord, Provider, SingleLinkCategoryContext, SingleLinkContext, Step,
)

YT = LinkRef(provider=Provider.YOUTUBE, external_id="dQw4w9WgXcQ")


def test_every_step_has_a_context_entry():
    assert set(STEP_CONTEXT) == set(Step)


def test_idle_state_has_no_context():
    state = ConversationState.idle("1")
    assert state.is_idle
    assert state.context is None


def test_step_without_context_rejects_payload():
    with pytest.raises(ValidationError):
        ConversationState(actor_id="1", step=Step.AWAITING_NAME, context=SingleLinkContext(link=YT))


def test_step_with_context_requires_payload():
    with pytest.raises(ValidationError):
        ConversationState(actor_id="1", step=Step.AWAITING_SINGLE_PROJECT)


def test_step_rejects_payload_of_another_step():
    with pytest.raises(ValidationError):
        ConversationState(actor_id="1", step=Step.AWAITING_SINGLE_PROJECT, context=SingleLinkContext(link=YT))


def test_category_in_context_is_checked():
    with pytest.raises(ValidationError):
        SingleLinkCategoryContext(link=YT, category="wedding")
    assert SingleLinkCategoryContext(link=YT, category="Stall").category == "stall"


def test_batch_context_needs_at_least_one_link():
    with pytest.raises(ValidationError):
        BatchLinksContext(links=[])


def test_state_survives_a_mongo_round_trip():
    state = ConversationState(
        actor_id="1",
        step=Step.AWAITING_SINGLE_PROJECT,
        context=SingleLinkCategoryContext(link=YT, category="event"),
    )
    doc = state.to_mongo()
    assert doc["_id"] == "1"
    assert doc["context"] == {"link": {"provider": "youtube", "external_id": "dQw4w9WgXcQ"}, "category": "event"}

    loaded = ConversationState.from_mongo(doc)
    assert loaded.step == Step.AWAITING_SINGLE_PROJECT
    assert isinstance(loaded.context, SingleLinkCategoryContext)
    assert loaded.context.link == YT


def test_edit_contexts_are_told_apart_by_step():
    edit_id = ConversationState(actor_id="1", step=Step.AWAITING_EDIT_ID, context={"field": "note"})
    edit_value = ConversationState(
        actor_id="1", step=Step.AWAITING_EDIT_VALUE, context={"field": "note", "media_id": "abc"},
    )
    assert type(edit_id.context) is EditFieldContext
    assert type(edit_value.context) is EditTargetContext
    assert edit_value.context.field == EditableField.NOTE


def test_advance_keeps_actor():
    state = ConversationState.idle("7").advance(Step.AWAITING_EDIT_ID, EditFieldContext(field=EditableField.NOTE))
    assert state.actor_id == "7"
    assert state.step == Step.AWAITING_EDIT_ID


def test_media_record_from_link():
    record = MediaRecord.from_link(YT, "Anamorphic", "Mall Launch")
    assert record.unique_id == "youtube_dQw4w9WgXcQ"
    assert record.source_ref == "dQw4w9WgXcQ"
    assert record.kind == MediaKind.YOUTUBE
    assert record.category == "anamorphic"
    assert record.is_external()


def test_media_record_mongo_shape():
    record = MediaRecord(unique_id="AQADxyz", source_ref="file-1", kind=MediaKind.PHOTO, project_name="Expo")
    doc = record.to_mongo()
    assert doc["_id"] == "AQADxyz"
    assert "unique_id" not in doc
    assert doc["kind"] == "photo"
    assert doc["category"] == "general"
    assert MediaRecord.model_validate(doc).unique_id == "AQADxyz"
    assert not record.is_external()


def test_media_record_rejects_unknown_category():
    with pytest.raises(ValidationError):
        MediaRecord(unique_id="x", source_ref="f", kind=MediaKind.PHOTO, category="wedding")
