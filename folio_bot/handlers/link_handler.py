# folio_bot/handlers/link_handler.py
"""
/add and /addbatch: external YouTube/Vimeo videos.

Both flows ask link(s) -> category -> project name. The single flow commits
one upsert; the batch flow commits every link in one transaction.
"""
import logging

from fuzzywuzzy import process

from folio_bot import config, strings
from folio_bot.database.models import (
    BatchLinksCategoryContext, BatchLinksContext, ConversationState, MediaRecord,
    SingleLinkCategoryContext, SingleLinkContext, Step,
)
from folio_bot.engine.conversation import Services
from folio_bot.engine.errors import ValidationFailure
from folio_bot.engine.events import EventKind, InboundEvent, Outcome
from folio_bot.handlers.base import advance, esc, finish, registry, require_text
from folio_bot.utils.link_resolver import resolve_batch, resolve_link

link_logger = logging.getLogger(__name__)

_PROVIDER_LABELS = {"youtube": "YouTube", "vimeo": "Vimeo"}


def category_prompt() -> str:
    return strings.PROMPT_CATEGORY.format(categories=", ".join(f"<code>{c}</code>" for c in config.MEDIA_CATEGORIES))


def parse_category(text: str) -> str:
    """
    Case-insensitive match against the fixed category set. A miss raises
    ValidationFailure whose message suggests the closest category, if any is close enough.
    """
    value = (text or "").strip().lower()
    if value in config.MEDIA_CATEGORIES:
        return value

    suggestion = ""
    if value:
        best = process.extractOne(value, config.MEDIA_CATEGORIES)
        if best and best[1] >= config.CATEGORY_SUGGEST_THRESHOLD:
            link_logger.debug(f"Category '{value}' close to '{best[0]}' (score {best[1]}).")
            suggestion = strings.CATEGORY_SUGGESTION.format(category=best[0])
    raise ValidationFailure(strings.INVALID_CATEGORY.format(
        value=esc(text.strip() if text else ""),
        suggestion=suggestion,
        categories=", ".join(f"<code>{c}</code>" for c in config.MEDIA_CATEGORIES),
    ))


# --- Single link ---

@registry.command("add")
async def add_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    return advance(state, Step.AWAITING_SINGLE_LINK, strings.PROMPT_SINGLE_LINK)


@registry.on(Step.AWAITING_SINGLE_LINK, EventKind.TEXT)
async def single_link_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    link = resolve_link(event.text)
    if link is None:
        raise ValidationFailure(strings.INVALID_LINK)
    reply = strings.LINK_ACCEPTED.format(
        provider=_PROVIDER_LABELS[link.provider.value], external_id=esc(link.external_id), prompt=category_prompt(),
    )
    return advance(state, Step.AWAITING_SINGLE_CATEGORY, reply, SingleLinkContext(link=link))


@registry.on(Step.AWAITING_SINGLE_CATEGORY, EventKind.TEXT)
async def single_category_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    category = parse_category(event.text)
    context = SingleLinkCategoryContext(link=state.context.link, category=category)
    return advance(state, Step.AWAITING_SINGLE_PROJECT, strings.PROMPT_PROJECT.format(category=category), context)


@registry.on(Step.AWAITING_SINGLE_PROJECT, EventKind.TEXT)
async def single_project_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    project = require_text(event, strings.INVALID_PROJECT)
    link = state.context.link
    record = MediaRecord.from_link(link, state.context.category, project)
    await services.catalog.upsert(record)
    link_logger.info(f"Link {record.unique_id} added by {event.actor_id}.")
    return finish(state, strings.LINK_ADDED.format(
        provider=_PROVIDER_LABELS[link.provider.value],
        category=record.category,
        project=esc(project),
        unique_id=record.unique_id,
    ))


# --- Batch of links ---

@registry.command("addbatch")
async def add_batch_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    return advance(state, Step.AWAITING_BATCH_LINKS, strings.PROMPT_BATCH_LINKS)


@registry.on(Step.AWAITING_BATCH_LINKS, EventKind.TEXT)
async def batch_links_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    links, dropped = resolve_batch(event.text)
    if not links:
        raise ValidationFailure(strings.NO_VALID_LINKS)
    reply = strings.BATCH_ACCEPTED.format(
        count=len(links),
        dropped=strings.BATCH_DROPPED.format(count=dropped) if dropped else "",
        prompt=category_prompt(),
    )
    return advance(state, Step.AWAITING_BATCH_CATEGORY, reply, BatchLinksContext(links=links))


@registry.on(Step.AWAITING_BATCH_CATEGORY, EventKind.TEXT)
async def batch_category_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    category = parse_category(event.text)
    context = BatchLinksCategoryContext(links=state.context.links, category=category)
    return advance(state, Step.AWAITING_BATCH_PROJECT, strings.PROMPT_PROJECT.format(category=category), context)


@registry.on(Step.AWAITING_BATCH_PROJECT, EventKind.TEXT)
async def batch_project_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    project = require_text(event, strings.INVALID_PROJECT)
    category = state.context.category
    records = [MediaRecord.from_link(link, category, project) for link in state.context.links]
    count = await services.catalog.upsert_many(records)
    link_logger.info(f"Batch of {count} links added by {event.actor_id}.")
    return finish(state, strings.BATCH_ADDED.format(count=count, category=category, project=esc(project)))
