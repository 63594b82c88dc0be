# folio_bot/handlers/profile_handler.py
import re
import logging
from typing import Callable, NamedTuple

from folio_bot import strings
from folio_bot.database.models import ConfigKey, ConversationState, Step
from folio_bot.engine.conversation import Services
from folio_bot.engine.errors import ValidationFailure
from folio_bot.engine.events import EventKind, InboundEvent, Outcome
from folio_bot.handlers.base import advance, esc, finish, registry, require_text, stay
from folio_bot.utils.logger import AuditAction

profile_logger = logging.getLogger(__name__)

_PHONE_CHARS_RE = re.compile(r"^\+?[\d\s().-]+$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s.]+$")


def _plain(value: str) -> str:
    return value


def _phone(value: str) -> str:
    digits = re.sub(r"\D", "", value)
    if not _PHONE_CHARS_RE.match(value) or not 7 <= len(digits) <= 15:
        raise ValidationFailure(strings.INVALID_PHONE)
    return value


def _email(value: str) -> str:
    if not _EMAIL_RE.match(value):
        raise ValidationFailure(strings.INVALID_EMAIL)
    return value


class SimpleValue(NamedTuple):
    command: str
    key: ConfigKey
    prompt: str
    confirmation: str
    check: Callable[[str], str]


# One prompt step per single-valued site setting
SIMPLE_VALUES = {
    Step.AWAITING_NAME: SimpleValue("setname", ConfigKey.PROFILE_NAME, strings.PROMPT_NAME, strings.NAME_UPDATED, _plain),
    Step.AWAITING_TITLE: SimpleValue("settitle", ConfigKey.PROFILE_TITLE, strings.PROMPT_TITLE, strings.TITLE_UPDATED, _plain),
    Step.AWAITING_DESC: SimpleValue("setdesc", ConfigKey.PROFILE_DESC, strings.PROMPT_DESC, strings.DESC_UPDATED, _plain),
    Step.AWAITING_PHONE: SimpleValue("setphone", ConfigKey.CONTACT_PHONE, strings.PROMPT_PHONE, strings.PHONE_UPDATED, _phone),
    Step.AWAITING_CALL: SimpleValue("setcall", ConfigKey.CONTACT_CALL, strings.PROMPT_CALL, strings.CALL_UPDATED, _phone),
    Step.AWAITING_EMAIL: SimpleValue("setemail", ConfigKey.CONTACT_EMAIL, strings.PROMPT_EMAIL, strings.EMAIL_UPDATED, _email),
}
_STEP_BY_COMMAND = {setting.command: step for step, setting in SIMPLE_VALUES.items()}


@registry.command(*_STEP_BY_COMMAND)
async def set_value_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    step = _STEP_BY_COMMAND[event.command]
    return advance(state, step, SIMPLE_VALUES[step].prompt)


@registry.on(list(SIMPLE_VALUES), EventKind.TEXT)
async def simple_value_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    setting = SIMPLE_VALUES[state.step]
    value = setting.check(require_text(event, strings.INVALID_EMPTY.format(prompt=setting.prompt)))
    await services.config_store.upsert(setting.key, value)
    profile_logger.info(f"{setting.key.value} updated by {event.actor_id}.")
    return finish(state, setting.confirmation.format(value=esc(value)))


@registry.command("setphoto")
async def set_photo_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    return advance(state, Step.AWAITING_PROFILE_PHOTO, strings.PROMPT_PROFILE_PHOTO)


@registry.on(Step.AWAITING_PROFILE_PHOTO, EventKind.PHOTO)
async def profile_photo_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    # Caption is ignored here; the photo is the whole answer
    await services.config_store.upsert(
        ConfigKey.PROFILE_PHOTO, event.media.file_id, action=AuditAction.PROFILE_PHOTO_UPDATE,
    )
    return finish(state, strings.PROFILE_PHOTO_UPDATED)


@registry.on(Step.AWAITING_PROFILE_PHOTO, EventKind.TEXT, EventKind.VIDEO)
async def profile_photo_expected(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    return stay(state, strings.EXPECTING_PROFILE_PHOTO)
