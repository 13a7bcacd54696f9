"""
app/flow/dispatcher.py

Purpose: Central event dispatcher

- Receives normalized events from the webhook
- Routes images, text and postbacks to the right flow handler
- Re-checks roles on every event (never cached in sessions)
- One failing event never breaks the others: errors are logged and
  the user gets the generic error copy
"""

from typing import Awaitable, Callable, Dict, Optional, Type

from app.core.logging import get_logger, LogContext
from app.flow import commands
from app.flow.context import FlowContext
from app.flow.handlers import (
    maintenance,
    payment,
    registration,
    staff_moveout,
    staff_payment,
    tenant_moveout,
)
from app.flow.states import FlowKind, FlowStep
from app.schemas.webhook import InboundEvent
from app.services.line_service import Responder, get_dispatcher
from app.services.role_service import get_role_resolver
from app.services.session_service import get_session_store
from utils import constants
from utils.validation_utils import is_phone_number, is_verify_code, parse_staff_navigation

logger = get_logger(__name__)

Handler = Callable[[FlowContext], Awaitable[None]]

# Exact keyword -> handler
KEYWORD_HANDLERS: Dict[str, Handler] = {
    constants.CMD_STAFF_PAYMENT: staff_payment.handle_staff_payment_start,
    constants.CMD_MAINTENANCE: maintenance.handle_maintenance_start,
    constants.CMD_SEND_SLIP: payment.handle_send_slip,
    constants.CMD_STAFF_UNPAID: payment.handle_staff_unpaid,
    constants.CMD_STAFF_MAINTENANCE_LIST: maintenance.handle_maintenance_list,
    constants.CMD_BANK_ACCOUNT: payment.handle_bank_account,
    constants.CMD_CONTACT: payment.handle_contact,
    constants.CMD_REGISTER_SESSION: registration.handle_register_session_start,
}
for _keyword in constants.CMD_TENANT_UNPAID:
    KEYWORD_HANDLERS[_keyword] = payment.handle_tenant_unpaid

POSTBACK_HANDLERS: Dict[Type, Callable[[FlowContext, object], Awaitable[None]]] = {
    commands.MoveoutDays: tenant_moveout.handle_moveout_days,
    commands.LinkAccept: registration.handle_link_accept,
    commands.LinkReject: registration.handle_link_reject,
    commands.PayBuilding: staff_payment.handle_pay_building,
    commands.PayFloor: staff_payment.handle_pay_floor,
    commands.PayRoom: staff_payment.handle_pay_room,
    commands.PayBack: staff_payment.handle_pay_back,
    commands.MoveoutBuilding: staff_moveout.handle_moveout_building,
    commands.MoveoutFloor: staff_moveout.handle_moveout_floor,
    commands.MoveoutRoom: staff_moveout.handle_moveout_room,
    commands.MaintenanceDone: maintenance.handle_maintenance_ack,
    commands.MaintenanceNotDone: maintenance.handle_maintenance_ack,
    commands.TenantMoveoutDate: tenant_moveout.handle_tenant_moveout_date,
}


def build_context(event: InboundEvent) -> FlowContext:
    return FlowContext(
        user_id=event.user_id,
        responder=Responder(get_dispatcher(), event.user_id, event.reply_token),
        sessions=get_session_store(),
        roles=get_role_resolver(),
    )


async def dispatch_event(event: InboundEvent) -> None:
    """
    Main dispatcher for one webhook event.

    Args:
        event: Normalized inbound event
    """
    if not event.user_id:
        logger.debug(f"Ignoring {event.raw_type} event without a user id")
        return

    ctx = build_context(event)
    with LogContext(user_id=event.user_id, event_type=event.kind):
        try:
            if event.kind == "image":
                await route_image(ctx, event.message_id)
            elif event.kind == "text":
                await route_text(ctx, event.text or "")
            elif event.kind == "postback":
                await route_postback(ctx, event.postback_data, event.postback_params)
            else:
                logger.debug(f"Ignoring {event.raw_type} event")
        except Exception as e:
            logger.error(f"❌ Dispatcher error: {e}", exc_info=True)
            await ctx.reply(constants.GENERIC_ERROR_MESSAGE)


async def route_image(ctx: FlowContext, message_id: Optional[str]) -> None:
    """
    Staff move-out photos first, then maintenance photos; anything else
    is a payment slip.
    """
    if not message_id:
        return

    if ctx.session(FlowKind.STAFF_MOVEOUT):
        await staff_moveout.handle_moveout_image(ctx, message_id)
        return

    ticket = ctx.session(FlowKind.MAINTENANCE)
    if ticket and ticket.step == FlowStep.WAIT_IMAGES:
        await maintenance.handle_maintenance_image(ctx, message_id)
        return

    await payment.handle_slip_image(ctx, message_id)


async def route_text(ctx: FlowContext, text: str) -> None:
    """
    Order: live flow continuation, exact keywords, pattern commands.
    Unmatched text gets no reply.
    """
    text = text.strip()
    if not text:
        return

    # Continuations
    if ctx.session(FlowKind.TENANT_MOVEOUT):
        await tenant_moveout.handle_tenant_moveout_text(ctx, text)
        return
    if ctx.session(FlowKind.MAINTENANCE):
        await maintenance.handle_maintenance_text(ctx, text)
        return

    # Keywords
    handler = KEYWORD_HANDLERS.get(text)
    if handler:
        await handler(ctx)
        return
    if constants.CMD_TENANT_MOVEOUT in text:
        await tenant_moveout.handle_tenant_moveout_start(ctx)
        return
    if constants.CMD_STAFF_MOVEOUT in text:
        await staff_moveout.handle_staff_moveout_start(ctx)
        return

    # Patterns
    head, _, rest = text.partition(" ")
    upper = head.upper()
    if upper == constants.CMD_REGISTER_STAFF:
        await registration.handle_staff_register(ctx, rest.strip())
        return
    if upper == constants.CMD_REGISTER:
        await registration.handle_register_command(ctx, rest.strip())
        return
    if text.startswith(constants.CMD_PAY_RENT):
        await payment.handle_pay_rent(ctx, text)
        return
    if is_verify_code(text) and ctx.session(FlowKind.STAFF_VERIFY):
        await registration.handle_verify_code(ctx, text)
        return
    if is_phone_number(text):
        await registration.handle_phone_number(ctx, text)
        return

    navigation = parse_staff_navigation(text)
    if navigation:
        await staff_payment.handle_staff_navigation(ctx, *navigation)
        return

    logger.debug("No command matched")


async def route_postback(ctx: FlowContext, data: Optional[str], params: Optional[dict] = None) -> None:
    command = commands.parse_postback(data, params)

    if isinstance(command, commands.UnknownCommand):
        logger.warning(f"⚠️ Unknown postback {command.data!r}: {command.reason}")
        await ctx.reply(constants.UNKNOWN_ACTION_MESSAGE)
        return

    logger.info(f"🔘 Postback {type(command).__name__}")
    await POSTBACK_HANDLERS[type(command)](ctx, command)
