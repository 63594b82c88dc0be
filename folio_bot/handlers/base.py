# folio_bot/handlers/base.py
import html
from typing import Optional

from pydantic import BaseModel

from folio_bot.database.models import ConversationState, Step
from folio_bot.engine.conversation import HandlerRegistry
from folio_bot.engine.errors import ValidationFailure
from folio_bot.engine.events import InboundEvent, Outcome, Reply

# Every handler module registers itself here on import
registry = HandlerRegistry()


def esc(value) -> str:
    """HTML-escape anything the admin typed before it goes into a reply."""
    return html.escape(str(value if value is not None else ""), quote=False)


def stay(state: ConversationState, text: str) -> Outcome:
    return Outcome(state=state, reply=Reply(text=text))


def advance(state: ConversationState, step: Step, text: str, context: Optional[BaseModel] = None) -> Outcome:
    return Outcome(state=state.advance(step, context), reply=Reply(text=text))


def finish(state: ConversationState, text: str) -> Outcome:
    """Back to idle. An actor that is already idle keeps its state object, so nothing is written."""
    if state.is_idle:
        return stay(state, text)
    return Outcome(state=ConversationState.idle(state.actor_id), reply=Reply(text=text))


def require_text(event: InboundEvent, message: str) -> str:
    value = (event.text or "").strip()
    if not value:
        raise ValidationFailure(message)
    return value
