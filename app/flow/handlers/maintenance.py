"""
app/flow/handlers/maintenance.py

Handles: Maintenance tickets

- "แจ้งซ่อม": detail, photo yes/no, then any number of photos
- Stores the ticket with image URLs in upload order
- Notifies staff with done / not-done buttons
- Each notified staff gets its own acknowledgment window
- "รายการแจ้งซ่อม": pending tickets for staff
"""

from dataclasses import replace
from typing import Any, Dict, Union

from app.core.logging import get_logger, LogContext
from app.flow.commands import MaintenanceDone, MaintenanceNotDone
from app.flow.context import FlowContext
from app.flow.states import FlowKind, FlowStep, MaintenanceSession, MaintenanceAckSession
from app.services import maintenance_service, property_service, user_service
from app.services.media_service import get_media_service
from utils import constants
from utils.line_utils import create_maintenance_question, create_maintenance_notify_card

logger = get_logger(__name__)


def build_description(session: MaintenanceSession) -> str:
    """
    Ticket description: detail, tenant identity, then IMAGE1..n lines.
    """
    lines = [
        session.detail or "-",
        f"TENANT: {session.tenant_name or '-'}",
        f"PHONE: {session.tenant_phone or '-'}",
    ]
    lines += [f"IMAGE{i}: {url}" for i, url in enumerate(session.image_urls, start=1)]
    return "\n".join(lines)


async def handle_maintenance_start(ctx: FlowContext) -> None:
    if ctx.is_staff:
        await ctx.reply(constants.MAINTENANCE_TENANT_ONLY)
        return
    if not await ctx.require_not_busy(allow=(FlowKind.MAINTENANCE,)):
        return

    contract, _ = await property_service.resolve_active_contract(ctx.user_id)
    if not contract:
        await ctx.reply(constants.NO_CONTRACT_FOR_ACCOUNT)
        return
    info = await property_service.describe_contract(contract)

    ctx.start(FlowKind.MAINTENANCE, MaintenanceSession(
        step=FlowStep.WAIT_DETAIL,
        contract_id=contract["_id"],
        room_id=contract["room_id"],
        room_number=str(info["room_number"]),
        tenant_name=info["tenant_name"],
        tenant_phone=info["tenant_phone"],
    ))
    await ctx.reply(constants.MAINTENANCE_DETAIL_PROMPT)


async def handle_maintenance_text(ctx: FlowContext, text: str) -> None:
    """
    Continuation of a live maintenance session.
    """
    session = ctx.session(FlowKind.MAINTENANCE)
    if not session:
        return
    text = text.strip()

    if session.step == FlowStep.WAIT_DETAIL:
        ctx.start(FlowKind.MAINTENANCE, replace(session, step=FlowStep.ASK_IMAGE, detail=text))
        await ctx.reply(create_maintenance_question())
        return

    if session.step == FlowStep.ASK_IMAGE:
        if text == constants.MAINTENANCE_WITH_PHOTO:
            ctx.start(FlowKind.MAINTENANCE, replace(session, step=FlowStep.WAIT_IMAGES))
            await ctx.reply(constants.MAINTENANCE_IMAGES_PROMPT)
        elif text == constants.MAINTENANCE_WITHOUT_PHOTO:
            await _submit(ctx, session)
        else:
            await ctx.reply(create_maintenance_question())
        return

    # WAIT_IMAGES
    if text in constants.MAINTENANCE_DONE_KEYWORDS:
        await _submit(ctx, session)
    else:
        await ctx.reply(constants.MAINTENANCE_IMAGES_PROMPT)


async def handle_maintenance_image(ctx: FlowContext, message_id: str) -> None:
    media = await get_media_service().ingest(message_id)
    if media is None:
        ctx.sessions.extend(ctx.user_id, FlowKind.MAINTENANCE)
        await ctx.reply(constants.MAINTENANCE_IMAGE_FAILED)
        return

    session = ctx.session(FlowKind.MAINTENANCE)
    if not session or session.step != FlowStep.WAIT_IMAGES:
        logger.info("Maintenance session ended while storing a photo")
        return

    ctx.start(FlowKind.MAINTENANCE, replace(session, image_urls=session.image_urls + (media.url,)))
    await ctx.reply(constants.MAINTENANCE_IMAGE_SAVED)


async def _submit(ctx: FlowContext, session: MaintenanceSession) -> None:
    ctx.clear(FlowKind.MAINTENANCE)

    with LogContext(flow=FlowKind.MAINTENANCE.value):
        request = await maintenance_service.create_request(
            session.room_id,
            constants.MAINTENANCE_RECORD_TITLE,
            build_description(session),
            reported_by=ctx.user_id,
            reporter_line_user_id=ctx.user_id,
        )
        await ctx.reply(constants.MAINTENANCE_SAVED)

        recipients = await user_service.list_notification_recipients()
        card = create_maintenance_notify_card(
            request, session.room_number, session.detail or "-", session.tenant_name, session.image_urls
        )
        for staff_id in recipients:
            ctx.sessions.start(staff_id, FlowKind.MAINTENANCE_ACK, MaintenanceAckSession(request_id=request["_id"]))
            ctx.push(card, to=staff_id)

        logger.info(f"🛠️ Ticket {request['_id']} sent to {len(recipients)} staff")


async def handle_maintenance_ack(ctx: FlowContext, command: Union[MaintenanceDone, MaintenanceNotDone]) -> None:
    """
    MAINT_DONE / MAINT_NOT_DONE from a notified staff member.

    Only a staff id holding a live acknowledgment session for this
    ticket may act.
    """
    if not await ctx.require_staff():
        return

    session = ctx.session(FlowKind.MAINTENANCE_ACK)
    if not session or session.request_id != command.request_id:
        await ctx.reply(constants.MAINTENANCE_ACK_NOT_ALLOWED)
        return

    request = await maintenance_service.get_request(command.request_id)
    if not request:
        ctx.clear(FlowKind.MAINTENANCE_ACK)
        await ctx.reply(constants.MAINTENANCE_NOT_FOUND)
        return

    done = isinstance(command, MaintenanceDone)
    status = constants.MAINTENANCE_DONE if done else constants.MAINTENANCE_IN_PROGRESS
    await maintenance_service.set_status(command.request_id, status)
    ctx.clear(FlowKind.MAINTENANCE_ACK)

    with LogContext(request_id=command.request_id):
        logger.info(f"✅ Ticket marked {status}")

    await ctx.reply(constants.MAINTENANCE_ACK_DONE if done else constants.MAINTENANCE_ACK_NOT_DONE)

    reporter = request.get("reporter_line_user_id")
    if reporter:
        ctx.push(
            constants.MAINTENANCE_TENANT_DONE if done else constants.MAINTENANCE_TENANT_IN_PROGRESS,
            to=reporter,
        )


async def handle_maintenance_list(ctx: FlowContext) -> None:
    if not await ctx.require_staff():
        return

    requests = await maintenance_service.list_pending(constants.MAX_LIST_ITEMS)
    if not requests:
        await ctx.reply(constants.MAINTENANCE_LIST_EMPTY)
        return

    lines = [constants.MAINTENANCE_LIST_HEADER]
    for request in requests:
        room: Dict[str, Any] = await property_service.get_room(request.get("room_id")) or {}
        detail = (request.get("description") or "-").split("\n")[0]
        lines.append(f"ห้อง {room.get('number') or '-'} | {request.get('title')} | {detail}")
    await ctx.reply("\n".join(lines))
