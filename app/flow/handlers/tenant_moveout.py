"""
app/flow/handlers/tenant_moveout.py

Handles: Tenant move-out intake

- "แจ้งย้ายออก" offers day presets, end of month and a date picker
- Plan (typed or picked), then a free-text reason
- Stores the move-out record
- MOVEOUT_DAYS: deposit refund notice period
- Move-out due notifications for staff
"""

import calendar
from dataclasses import replace
from datetime import date, timedelta
from typing import Any, Dict, Optional

from app.core.logging import get_logger, LogContext
from app.flow.commands import MoveoutDays, TenantMoveoutDate
from app.flow.context import FlowContext
from app.flow.states import FlowKind, FlowStep, TenantMoveoutSession
from app.services import maintenance_service, property_service, user_service
from app.services.line_service import get_dispatcher
from utils import constants
from utils.line_utils import create_tenant_moveout_card
from utils.time_utils import add_months, bangkok_today
from utils.validation_utils import parse_moveout_plan

logger = get_logger(__name__)

MAX_MONTHS_AHEAD = 2


def resolve_moveout_date(plan: str, today: date) -> date:
    """
    "<n> วัน" -> today + n days; "สิ้นเดือน" -> last day of this month.
    """
    if plan == "สิ้นเดือน":
        return date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])
    return today + timedelta(days=int(plan.split(" ")[0]))


async def handle_tenant_moveout_start(ctx: FlowContext) -> None:
    if ctx.is_staff:
        await ctx.reply(constants.STAFF_USE_STAFF_MOVEOUT)
        return
    if not await ctx.require_not_busy(allow=(FlowKind.TENANT_MOVEOUT,)):
        return

    contract, _ = await property_service.resolve_active_contract(ctx.user_id)
    if not contract:
        await ctx.reply(constants.NO_CONTRACT_FOR_ACCOUNT)
        return
    info = await property_service.describe_contract(contract)

    ctx.start(FlowKind.TENANT_MOVEOUT, TenantMoveoutSession(
        step=FlowStep.WAIT_PLAN,
        contract_id=contract["_id"],
        room_id=contract["room_id"],
        room_number=str(info["room_number"]),
        tenant_name=info["tenant_name"],
        tenant_phone=info["tenant_phone"],
    ))

    today = bangkok_today()
    await ctx.reply(create_tenant_moveout_card(info["room_number"], today, add_months(today, MAX_MONTHS_AHEAD)))


async def _accept_plan(ctx: FlowContext, session: TenantMoveoutSession, plan: str, moveout: date) -> None:
    ctx.start(FlowKind.TENANT_MOVEOUT, replace(
        session, step=FlowStep.WAIT_REASON, plan=plan, moveout_date=moveout.isoformat()
    ))
    await ctx.reply(constants.TENANT_MOVEOUT_REASON_PROMPT)


async def handle_tenant_moveout_text(ctx: FlowContext, text: str) -> None:
    """
    Continuation of a live tenant move-out session.

    WAIT_PLAN: an unreadable plan re-sends the same prompt and keeps the step.
    WAIT_REASON: any text is the reason; the record is stored.
    """
    session = ctx.session(FlowKind.TENANT_MOVEOUT)
    if not session:
        return

    if session.step == FlowStep.WAIT_PLAN:
        plan = parse_moveout_plan(text)
        if plan is None:
            await ctx.reply(constants.TENANT_MOVEOUT_PLAN_RETRY)
            return
        await _accept_plan(ctx, session, plan, resolve_moveout_date(plan, bangkok_today()))
        return

    ctx.clear(FlowKind.TENANT_MOVEOUT)
    description = "\n".join([
        f"วันที่ย้ายออก: {session.moveout_date}",
        f"ย้ายออกภายใน: {session.plan}",
        f"เหตุผล: {text.strip()}",
        f"TENANT: {session.tenant_name or '-'}",
        f"PHONE: {session.tenant_phone or '-'}",
    ])
    with LogContext(flow=FlowKind.TENANT_MOVEOUT.value):
        await maintenance_service.create_request(
            session.room_id,
            constants.MOVEOUT_RECORD_TITLE,
            description,
            reported_by=ctx.user_id,
            reporter_line_user_id=ctx.user_id,
        )
        logger.info(f"🚪 Tenant move-out recorded for room {session.room_number} on {session.moveout_date}")
    await ctx.reply(constants.TENANT_MOVEOUT_SAVED)


async def handle_tenant_moveout_date(ctx: FlowContext, command: TenantMoveoutDate) -> None:
    """
    Date picker result. Accepts dates from today up to two months ahead.
    """
    session = ctx.session(FlowKind.TENANT_MOVEOUT)
    if not session:
        await ctx.reply(constants.TENANT_MOVEOUT_NO_SESSION)
        return

    try:
        picked = date.fromisoformat(command.date) if command.date else None
    except ValueError:
        picked = None

    today = bangkok_today()
    if picked is None or not today <= picked <= add_months(today, MAX_MONTHS_AHEAD):
        await ctx.reply(constants.TENANT_MOVEOUT_PLAN_RETRY)
        return

    await _accept_plan(ctx, session, f"{(picked - today).days} วัน", picked)


async def handle_moveout_days(ctx: FlowContext, command: MoveoutDays) -> None:
    """
    MOVEOUT_DAYS=n: stores the deposit refund notice period on the active
    contract and asks for refund bank details.
    """
    contract, _ = await property_service.resolve_active_contract(ctx.user_id)
    if not contract:
        await ctx.reply(constants.NO_CONTRACT_FOR_ACCOUNT)
        return

    await property_service.set_deposit_refund_days(contract["_id"], command.days)
    logger.info(f"📅 Deposit refund notice set to {command.days} days for contract {contract['_id']}")
    await ctx.reply(constants.MOVEOUT_DAYS_RECORDED.format(days=command.days))


async def notify_moveout_due(day: Optional[date] = None) -> Dict[str, Any]:
    """
    Pushes notification recipients the rooms due to move out on ``day``.

    Args:
        day: Move-out date (default: today in Bangkok)

    Returns:
        {"date": "YYYY-MM-DD", "rooms": [...], "notified": int}
    """
    day = day or bangkok_today()
    records = await maintenance_service.find_moveouts_for_date(day.isoformat())

    rooms = []
    for record in records:
        room = await property_service.get_room(record.get("room_id"))
        rooms.append(str((room or {}).get("number") or "-"))

    notified = 0
    if rooms:
        recipients = await user_service.list_notification_recipients()
        text = "\n".join([constants.MOVEOUT_DUE_HEADER.format(date=day.isoformat())] + [f"ห้อง {r}" for r in rooms])
        dispatcher = get_dispatcher()
        for recipient in recipients:
            dispatcher.push(recipient, [text])
        notified = len(recipients)

    logger.info(f"📣 Move-out due {day.isoformat()}: {len(rooms)} room(s), {notified} recipient(s)")
    return {"date": day.isoformat(), "rooms": rooms, "notified": notified}
