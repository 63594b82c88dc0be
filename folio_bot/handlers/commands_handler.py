# folio_bot/handlers/commands_handler.py
import logging

from folio_bot import config, strings
from folio_bot.database.models import ConfigKey, ConversationState, SiteStatus, Step
from folio_bot.engine.conversation import Services
from folio_bot.engine.errors import NotFoundFailure, ValidationFailure
from folio_bot.engine.events import EventKind, InboundEvent, Outcome
from folio_bot.handlers.base import esc, finish, registry, stay
from folio_bot.utils.logger import AuditAction

common_logger = logging.getLogger(__name__)

# Steps where inline arguments cannot stand in for the next message
_NO_INLINE_INPUT = (Step.IDLE, Step.AWAITING_PROFILE_PHOTO)


@registry.on(list(Step), EventKind.COMMAND)
async def command_dispatcher(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    """
    The engine has already moved the actor to idle; this looks the command up
    and, for prompt commands with arguments, feeds them to the prompt step.
    """
    handler = registry.resolve_command(event.command)
    if handler is None:
        common_logger.info(f"Unknown command /{event.command} from {event.actor_id}.")
        return finish(state, strings.UNKNOWN_COMMAND.format(command=esc(event.command)))

    outcome = await handler(services, event, state)
    if not event.text or outcome.state.step in _NO_INLINE_INPUT:
        return outcome

    prompt_step = outcome.state.step
    text_handler = registry.resolve(prompt_step, EventKind.TEXT)
    common_logger.debug(f"Feeding inline arguments of /{event.command} into {prompt_step.value}.")
    try:
        return await text_handler(services, event.as_text(event.text), outcome.state)
    except ValidationFailure as e:
        return stay(outcome.state, e.message)
    except NotFoundFailure as e:
        if e.retry:
            return stay(outcome.state, e.message)
        raise


@registry.on(Step.IDLE, EventKind.TEXT)
async def idle_text(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    return stay(state, strings.IDLE_TEXT_GUIDANCE)


@registry.command("start", "help")
async def help_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    categories = ", ".join(f"<code>{c}</code>" for c in config.MEDIA_CATEGORIES)
    return stay(state, strings.HELP_MESSAGE.format(categories=categories))


@registry.command("cancel")
async def cancel_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    if event.interrupted is None:
        return stay(state, strings.NOTHING_TO_CANCEL)
    common_logger.info(f"{event.actor_id} cancelled {event.interrupted.value}.")
    return stay(state, strings.ACTION_CANCELLED)


@registry.command("pause")
async def pause_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    await services.config_store.upsert(ConfigKey.SITE_STATUS, SiteStatus.PAUSED.value, action=AuditAction.SITE_PAUSE)
    return stay(state, strings.SITE_PAUSED)


@registry.command("resume")
async def resume_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    await services.config_store.upsert(ConfigKey.SITE_STATUS, SiteStatus.LIVE.value, action=AuditAction.SITE_RESUME)
    return stay(state, strings.SITE_RESUMED)
