# folio_bot/handlers/media_handler.py
import logging
from typing import Tuple

from folio_bot import config, strings
from folio_bot.database.models import (
    ConversationState, EditableField, EditFieldContext, EditTargetContext, MediaKind, MediaRecord, Step,
)
from folio_bot.database.stores import MediaNotFound
from folio_bot.engine.conversation import Services
from folio_bot.engine.errors import NotFoundFailure
from folio_bot.engine.events import EventKind, InboundEvent, Outcome
from folio_bot.handlers.base import advance, esc, finish, registry, require_text, stay

media_logger = logging.getLogger(__name__)

_UPLOAD_KINDS = {EventKind.PHOTO: MediaKind.PHOTO, EventKind.VIDEO: MediaKind.VIDEO}
_UPLOAD_REPLIES = {MediaKind.PHOTO: strings.PHOTO_ADDED, MediaKind.VIDEO: strings.VIDEO_ADDED}
_EDIT_COMMANDS = {"edittitle": EditableField.PROJECT_NAME, "editnote": EditableField.NOTE}


def parse_caption(caption: str) -> Tuple[str, str]:
    """
    "anamorphic Mall Launch" -> ("anamorphic", "Mall Launch")
    "Mall Launch"            -> ("general", "Mall Launch")
    """
    words = (caption or "").split(maxsplit=1)
    if words and words[0].lower() in config.MEDIA_CATEGORIES:
        return words[0].lower(), words[1].strip() if len(words) > 1 else ""
    return config.DEFAULT_CATEGORY, (caption or "").strip()


# --- Uploads ---

@registry.on([step for step in Step if step != Step.AWAITING_PROFILE_PHOTO], EventKind.PHOTO, EventKind.VIDEO)
async def captioned_upload(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    """Photos and videos go straight into the catalog. Whatever dialog was open stays open."""
    kind = _UPLOAD_KINDS[event.kind]
    category, project = parse_caption(event.text)
    record = MediaRecord(
        unique_id=event.media.file_unique_id,
        source_ref=event.media.file_id,
        kind=kind,
        category=category,
        project_name=project,
        note=event.text,
    )
    await services.catalog.upsert(record)
    media_logger.info(f"{kind.value} {record.unique_id} added to '{category}' by {event.actor_id}.")
    return stay(state, _UPLOAD_REPLIES[kind].format(category=category, unique_id=esc(record.unique_id)))


# --- Listing ---

@registry.command("list")
async def list_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    records = await services.catalog.list_all()
    if not records:
        return stay(state, strings.NO_MEDIA)
    items = [
        strings.MEDIA_LIST_ITEM.format(
            project=esc(record.project_name or "Project"),
            category=record.category,
            kind=record.kind.value,
            note=esc(record.note or "N/A"),
            unique_id=esc(record.unique_id),
        )
        for record in records
    ]
    return stay(state, "\n\n".join([strings.MEDIA_LIST_TITLE.format(count=len(records))] + items))


# --- Delete ---

@registry.command("delete")
async def delete_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    return advance(state, Step.AWAITING_DELETE_ID, strings.PROMPT_DELETE_ID)


@registry.on(Step.AWAITING_DELETE_ID, EventKind.TEXT)
async def delete_id_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    unique_id = require_text(event, strings.PROMPT_DELETE_ID)
    if not await services.catalog.delete(unique_id):
        raise NotFoundFailure(strings.MEDIA_NOT_FOUND_RETRY.format(unique_id=esc(unique_id)))
    media_logger.info(f"Media {unique_id} deleted by {event.actor_id}.")
    return finish(state, strings.MEDIA_DELETED.format(unique_id=esc(unique_id)))


# --- Edit project name / note ---

@registry.command(*_EDIT_COMMANDS)
async def edit_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    field = _EDIT_COMMANDS[event.command]
    prompt = strings.PROMPT_EDIT_ID.format(field=strings.FIELD_LABELS[field.value])
    return advance(state, Step.AWAITING_EDIT_ID, prompt, EditFieldContext(field=field))


@registry.on(Step.AWAITING_EDIT_ID, EventKind.TEXT)
async def edit_id_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    field = state.context.field
    label = strings.FIELD_LABELS[field.value]
    unique_id = require_text(event, strings.PROMPT_EDIT_ID.format(field=label))
    record = await services.catalog.get(unique_id)
    if record is None:
        raise NotFoundFailure(strings.MEDIA_NOT_FOUND_RETRY.format(unique_id=esc(unique_id)))
    current = getattr(record, field.value) or "N/A"
    prompt = strings.PROMPT_EDIT_VALUE.format(field=label, current=esc(current))
    return advance(state, Step.AWAITING_EDIT_VALUE, prompt, EditTargetContext(field=field, media_id=unique_id))


@registry.on(Step.AWAITING_EDIT_VALUE, EventKind.TEXT)
async def edit_value_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    field = state.context.field
    unique_id = state.context.media_id
    label = strings.FIELD_LABELS[field.value]
    value = require_text(event, strings.INVALID_EDIT_VALUE.format(field=label))
    try:
        await services.catalog.update_field(unique_id, field, value)
    except MediaNotFound:
        # Deleted between the two prompts
        raise NotFoundFailure(strings.MEDIA_NOT_FOUND.format(unique_id=esc(unique_id)), retry=False)
    media_logger.info(f"{field.value} of {unique_id} edited by {event.actor_id}.")
    return finish(state, strings.MEDIA_UPDATED.format(
        field=label.capitalize(), unique_id=esc(unique_id), value=esc(value),
    ))
