# folio_bot/engine/events.py
import re
from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict

from folio_bot.database.models import ConversationState, Step


_COMMAND_RE = re.compile(r"^/(\S+)\s*(.*)$", re.DOTALL)


class EventKind(str, Enum):
    COMMAND = "command"
    TEXT = "text"
    PHOTO = "photo"
    VIDEO = "video"


class MediaAttachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    file_id: str
    file_unique_id: str


class InboundEvent(BaseModel):
    """One message from Telegram, already stripped of transport details."""
    model_config = ConfigDict(frozen=True)

    actor_id: str
    kind: EventKind
    text: str = ""  # text body, command arguments, or media caption
    command: Optional[str] = None  # lower-cased, without "/" and "@botname"
    media: Optional[MediaAttachment] = None
    # Set by the engine when a command cut an unfinished dialog short
    interrupted: Optional[Step] = None

    @classmethod
    def from_text(cls, actor_id, text: str) -> "InboundEvent":
        """Builds a COMMAND event for "/name args", a TEXT event otherwise."""
        actor_id = str(actor_id)
        command, args = parse_command(text)
        if command is not None:
            return cls(actor_id=actor_id, kind=EventKind.COMMAND, command=command, text=args)
        return cls(actor_id=actor_id, kind=EventKind.TEXT, text=(text or "").strip())

    @classmethod
    def from_media(cls, actor_id, kind: EventKind, file_id: str, file_unique_id: str, caption: Optional[str] = None) -> "InboundEvent":
        return cls(
            actor_id=str(actor_id),
            kind=kind,
            text=(caption or "").strip(),
            media=MediaAttachment(file_id=file_id, file_unique_id=file_unique_id),
        )

    def as_text(self, text: str) -> "InboundEvent":
        return InboundEvent(actor_id=self.actor_id, kind=EventKind.TEXT, text=text.strip())


def parse_command(text: Optional[str]) -> Tuple[Optional[str], str]:
    """
    "/SetName@folio_bot Jane Doe" -> ("setname", "Jane Doe").
    Returns (None, "") for anything that is not a slash-command.
    """
    match = _COMMAND_RE.match((text or "").strip())
    if not match:
        return None, ""
    name = match.group(1).split("@", 1)[0].lower()
    if not name:
        return None, ""
    return name, match.group(2).strip()


class Reply(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    html: bool = True


class Outcome(BaseModel):
    """What a handler decided: the actor's next state and the reply to send."""
    model_config = ConfigDict(frozen=True)

    state: ConversationState
    reply: Reply
