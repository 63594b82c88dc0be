# folio_bot/engine/conversation.py
import asyncio
import html
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from folio_bot import strings
from folio_bot.database.models import ConversationState, Step
from folio_bot.database.stores import (
    AccessControlList, ConfigStore, ConversationStore, MediaCatalog, StoreError,
)
from folio_bot.engine.errors import AuthorizationFailure, NotFoundFailure, ValidationFailure
from folio_bot.engine.events import EventKind, InboundEvent, Outcome, Reply
from folio_bot.utils.logger import AuditAction, AuditLog

engine_logger = logging.getLogger(__name__)


class Services:
    """Stores a handler may touch. Built once in main and injected into the engine."""

    def __init__(self, config_store: ConfigStore, catalog: MediaCatalog, acl: AccessControlList, audit: AuditLog):
        self.config_store = config_store
        self.catalog = catalog
        self.acl = acl
        self.audit = audit


Handler = Callable[[Services, InboundEvent, ConversationState], Awaitable[Outcome]]
CommandHandler = Handler


class HandlerRegistry:
    """
    Handlers keyed by (step, event kind), plus the slash-command table.
    Kept as an explicit table so a test can walk every pair.
    """

    def __init__(self):
        self._handlers: Dict[Tuple[Step, EventKind], Handler] = {}
        self._commands: Dict[str, CommandHandler] = {}

    def on(self, steps: Union[Step, Iterable[Step]], *kinds: EventKind):
        step_list = [steps] if isinstance(steps, Step) else list(steps)

        def decorator(func: Handler) -> Handler:
            for step in step_list:
                for kind in kinds:
                    key = (step, kind)
                    if key in self._handlers:
                        raise ValueError(f"Handler for {step.value}/{kind.value} registered twice")
                    self._handlers[key] = func
            return func
        return decorator

    def command(self, *names: str):
        def decorator(func: CommandHandler) -> CommandHandler:
            for name in names:
                self._commands[name.lower()] = func
            return func
        return decorator

    def resolve(self, step: Step, kind: EventKind) -> Optional[Handler]:
        return self._handlers.get((step, kind))

    def resolve_command(self, name: Optional[str]) -> Optional[CommandHandler]:
        return self._commands.get((name or "").lower())

    @property
    def command_names(self) -> List[str]:
        return sorted(self._commands)

    def missing(self) -> List[Tuple[Step, EventKind]]:
        return [(step, kind) for step in Step for kind in EventKind if (step, kind) not in self._handlers]


def store_error_reply(error: StoreError) -> Reply:
    return Reply(text=strings.STORE_ERROR.format(error=html.escape(str(error), quote=False)))


class ConversationEngine:
    """
    Interprets one inbound event for the configured admin.

    Load state -> pick handler -> persist next state runs under a per-actor
    lock, so two quick messages cannot interleave halfway through a dialog.
    """

    def __init__(self, admin_id: str, conversations: ConversationStore, services: Services, registry: HandlerRegistry):
        self.admin_id = str(admin_id)
        self.conversations = conversations
        self.services = services
        self.registry = registry
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def authorize(self, actor_id: str) -> None:
        if str(actor_id) != self.admin_id:
            raise AuthorizationFailure(strings.NOT_AUTHORIZED)

    async def handle(self, event: InboundEvent) -> Reply:
        # Checked before any state is read
        try:
            self.authorize(event.actor_id)
        except AuthorizationFailure as e:
            engine_logger.warning(f"Rejected {event.kind.value} event from unauthorized chat {event.actor_id}.")
            await self.services.audit.log(AuditAction.UNAUTHORIZED_ACCESS, f"Attempt from ChatID: {event.actor_id}")
            return Reply(text=e.message)

        async with self._locks[event.actor_id]:
            return await self._dispatch(event)

    async def _dispatch(self, event: InboundEvent) -> Reply:
        actor_id = event.actor_id
        try:
            state = await self.conversations.load(actor_id)
        except StoreError as e:
            return store_error_reply(e)

        if event.kind == EventKind.COMMAND:
            await self.services.audit.log(AuditAction.COMMAND_RECEIVED, f"/{event.command} {event.text}".strip())
            if not state.is_idle:
                # A command always wins over an unfinished dialog
                engine_logger.info(f"Command /{event.command} interrupts {state.step.value} for {actor_id}.")
                event = event.model_copy(update={"interrupted": state.step})
                state = ConversationState.idle(actor_id)
                try:
                    await self.conversations.clear(actor_id)
                except StoreError as e:
                    return store_error_reply(e)

        handler = self.registry.resolve(state.step, event.kind)
        if handler is None:
            engine_logger.error(f"No handler for {state.step.value}/{event.kind.value}; resetting {actor_id}.")
            await self._reset(actor_id)
            return Reply(text=strings.UNEXPECTED_STATE)

        engine_logger.debug(f"{actor_id}: {state.step.value} + {event.kind.value} -> {handler.__name__}")
        try:
            outcome = await handler(self.services, event, state)
        except ValidationFailure as e:
            return Reply(text=e.message)
        except NotFoundFailure as e:
            if not e.retry:
                await self._reset(actor_id)
            return Reply(text=e.message)
        except StoreError as e:
            await self._reset(actor_id)
            return store_error_reply(e)
        except Exception as e:
            engine_logger.error(f"Error handling {event.kind.value} for {actor_id} in {state.step.value}: {e}", exc_info=True)
            await self._reset(actor_id)
            return Reply(text=strings.ERROR_OCCURRED)

        if outcome.state is not state:
            try:
                await self.conversations.save(outcome.state)
            except StoreError as e:
                return store_error_reply(e)
        return outcome.reply

    async def _reset(self, actor_id: str) -> None:
        try:
            await self.conversations.clear(actor_id)
        except StoreError as e:
            engine_logger.error(f"Could not reset state for {actor_id}: {e}")
