# folio_bot/handlers/security_handler.py
import ipaddress
import logging

from folio_bot import strings
from folio_bot.database.models import ConversationState, Step
from folio_bot.engine.conversation import Services
from folio_bot.engine.errors import ValidationFailure
from folio_bot.engine.events import EventKind, InboundEvent, Outcome
from folio_bot.handlers.base import advance, esc, finish, registry, require_text, stay

security_logger = logging.getLogger(__name__)


def normalize_ip(text: str) -> str:
    """'2001:DB8::0001' -> '2001:db8::1'. Raises ValidationFailure for anything that is not an address."""
    try:
        return str(ipaddress.ip_address(text.strip()))
    except ValueError:
        raise ValidationFailure(strings.INVALID_IP.format(value=esc(text.strip())))


@registry.command("block")
async def block_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    return advance(state, Step.AWAITING_BLOCK_IP, strings.PROMPT_BLOCK_IP)


@registry.command("unblock")
async def unblock_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    return advance(state, Step.AWAITING_UNBLOCK_IP, strings.PROMPT_UNBLOCK_IP)


@registry.command("listblocked")
async def list_blocked_command(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    ips = services.acl.list_all()
    if not ips:
        return stay(state, strings.NO_BLOCKED_IPS)
    lines = "\n".join(f"<code>{esc(ip)}</code>" for ip in ips)
    return stay(state, f"{strings.BLOCKED_IPS_TITLE}\n{lines}")


@registry.on(Step.AWAITING_BLOCK_IP, EventKind.TEXT)
async def block_ip_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    ip = normalize_ip(require_text(event, strings.PROMPT_BLOCK_IP))
    added = await services.acl.add(ip)
    security_logger.info(f"IP {ip} blocked by {event.actor_id} (new: {added}).")
    template = strings.IP_BLOCKED if added else strings.IP_ALREADY_BLOCKED
    return finish(state, template.format(ip=ip))


@registry.on(Step.AWAITING_UNBLOCK_IP, EventKind.TEXT)
async def unblock_ip_input(services: Services, event: InboundEvent, state: ConversationState) -> Outcome:
    ip = normalize_ip(require_text(event, strings.PROMPT_UNBLOCK_IP))
    if not await services.acl.remove(ip):
        return finish(state, strings.IP_NOT_BLOCKED.format(ip=ip))
    security_logger.info(f"IP {ip} unblocked by {event.actor_id}.")
    return finish(state, strings.IP_UNBLOCKED.format(ip=ip))
