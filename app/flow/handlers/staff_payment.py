"""
app/flow/handlers/staff_payment.py

Handles: Staff payment drill-down

- "รับชำระเงิน" shows buildings with unpaid invoices
- PAY_BUILDING -> PAY_FLOOR -> PAY_ROOM postbacks, plus PAY_BACK
- "ตึก / ชั้น / ห้อง" text navigation with the same gates
- Room selection arms the payment context for the next slip
"""

from dataclasses import replace
from typing import Any, Dict

from app.core.logging import get_logger
from app.flow.commands import PayBack, PayBuilding, PayFloor, PayRoom
from app.flow.context import FlowContext
from app.flow.states import FlowKind, FlowStep, PaymentSession, StaffPaymentSession, PAYMENT_FAMILY
from app.flow.handlers.payment import send_pay_info
from app.services import billing_service, property_service
from utils import constants
from utils.line_utils import create_building_card, create_floor_card, create_room_card

logger = get_logger(__name__)

Doc = Dict[str, Any]

BACK_TO_BUILDINGS = "PAY_BACK=BUILDINGS"


async def _reply_buildings(ctx: FlowContext) -> None:
    buildings = await billing_service.buildings_with_unpaid()
    if not buildings:
        await ctx.reply(constants.STAFF_PAY_NO_BUILDINGS)
        return
    await ctx.reply(create_building_card(constants.STAFF_PAY_CHOOSE_BUILDING, buildings, "PAY_BUILDING"))


async def _enter_building(ctx: FlowContext, building: Doc) -> None:
    floors = await billing_service.floors_with_unpaid(building["_id"])
    if not floors:
        ctx.clear(FlowKind.STAFF_PAYMENT)
        await ctx.reply(constants.STAFF_PAY_NO_FLOORS)
        return

    ctx.start(FlowKind.STAFF_PAYMENT, StaffPaymentSession(step=FlowStep.SELECT_FLOOR, building_id=building["_id"]))
    await ctx.reply(create_floor_card(
        f"{building.get('name') or building['_id']}: เลือกชั้น",
        building["_id"],
        floors,
        "PAY_FLOOR",
        back_data=BACK_TO_BUILDINGS,
    ))


async def _select_room(ctx: FlowContext, room: Doc) -> None:
    """
    Room chosen: needs an active contract with an unpaid invoice.
    """
    contract = await property_service.find_active_contract_for_rooms([room["_id"]])
    if not contract:
        await ctx.reply(constants.STAFF_PAY_NO_CONTRACT)
        return

    invoice = await billing_service.find_latest_unpaid([contract["_id"]])
    if not invoice:
        await ctx.reply(constants.STAFF_PAY_NO_UNPAID)
        return

    session = ctx.session(FlowKind.STAFF_PAYMENT)
    if session is None:
        logger.info("Staff payment session ended while resolving the room")
        return

    ctx.start(FlowKind.STAFF_PAYMENT, replace(
        session,
        step=FlowStep.AWAIT_SLIP,
        room_id=room["_id"],
        contract_id=contract["_id"],
    ))
    ctx.start(FlowKind.PAYMENT, PaymentSession(invoice_id=invoice["_id"]))
    logger.info(f"💳 Staff selected room {room.get('number')} invoice {invoice['_id']}")

    await send_pay_info(ctx, invoice)


# ============================================================
# ENTRY & POSTBACKS
# ============================================================

async def handle_staff_payment_start(ctx: FlowContext) -> None:
    if not await ctx.require_staff():
        return
    if not await ctx.require_not_busy(allow=PAYMENT_FAMILY):
        return
    await _reply_buildings(ctx)


async def handle_pay_building(ctx: FlowContext, command: PayBuilding) -> None:
    if not await ctx.require_staff():
        return
    if not await ctx.require_not_busy(allow=PAYMENT_FAMILY):
        return

    building = await property_service.get_building(command.building_id)
    if not building:
        await ctx.reply(constants.STAFF_NAV_BUILDING_NOT_FOUND.format(token=command.building_id))
        return
    await _enter_building(ctx, building)


async def handle_pay_floor(ctx: FlowContext, command: PayFloor) -> None:
    if not await ctx.require_staff():
        return

    session = ctx.session(FlowKind.STAFF_PAYMENT)
    if not session or session.building_id != command.building_id:
        await ctx.reply(constants.STAFF_PAY_SELECT_BUILDING_FIRST)
        return

    rooms = await billing_service.rooms_with_unpaid(command.building_id, command.floor)
    if not rooms:
        await ctx.reply(constants.STAFF_PAY_NO_ROOMS)
        return

    session = ctx.session(FlowKind.STAFF_PAYMENT)
    if not session or session.building_id != command.building_id:
        return

    ctx.start(FlowKind.STAFF_PAYMENT, replace(
        session, step=FlowStep.SELECT_ROOM, floor=command.floor, room_id=None, contract_id=None
    ))
    await ctx.reply(create_room_card(
        f"ชั้น {command.floor}: เลือกห้อง",
        rooms,
        "PAY_ROOM",
        back_data=f"PAY_BACK=FLOORS:{command.building_id}",
    ))


async def handle_pay_room(ctx: FlowContext, command: PayRoom) -> None:
    if not await ctx.require_staff():
        return

    session = ctx.session(FlowKind.STAFF_PAYMENT)
    if not session or session.floor is None:
        await ctx.reply(constants.STAFF_PAY_SELECT_FLOOR_FIRST)
        return

    room = await property_service.get_room(command.room_id)
    if not room or room.get("building_id") != session.building_id or room.get("floor") != session.floor:
        await ctx.reply(constants.STAFF_PAY_SELECT_FLOOR_FIRST)
        return

    await _select_room(ctx, room)


async def handle_pay_back(ctx: FlowContext, command: PayBack) -> None:
    if not await ctx.require_staff():
        return

    if command.target == "BUILDINGS":
        ctx.clear(FlowKind.STAFF_PAYMENT)
        await _reply_buildings(ctx)
        return

    if not await ctx.require_not_busy(allow=PAYMENT_FAMILY):
        return

    building = await property_service.get_building(command.building_id)
    if not building:
        await ctx.reply(constants.STAFF_PAY_SELECT_BUILDING_FIRST)
        return
    await _enter_building(ctx, building)


# ============================================================
# TEXT NAVIGATION
# ============================================================

async def handle_staff_navigation(ctx: FlowContext, level: str, value: str) -> None:
    """
    Handles "ตึก <ชื่อ/รหัส>", "ชั้น <n>" and "ห้อง <เลขห้อง>".

    Args:
        level: "BUILDING", "FLOOR" or "ROOM"
        value: Building token, floor number or room number
    """
    if not await ctx.require_staff():
        return

    if level == "BUILDING":
        if not await ctx.require_not_busy(allow=PAYMENT_FAMILY):
            return
        building = await property_service.find_building(value)
        if not building:
            await ctx.reply(constants.STAFF_NAV_BUILDING_NOT_FOUND.format(token=value))
            return
        ctx.start(FlowKind.STAFF_PAYMENT, StaffPaymentSession(step=FlowStep.SELECT_FLOOR, building_id=building["_id"]))
        await ctx.reply(constants.STAFF_NAV_BUILDING_SELECTED.format(name=building.get("name") or value))
        return

    session = ctx.session(FlowKind.STAFF_PAYMENT)

    if level == "FLOOR":
        if not session:
            await ctx.reply(constants.STAFF_NAV_BUILDING_FIRST)
            return
        floor = int(value)
        ctx.start(FlowKind.STAFF_PAYMENT, replace(
            session, step=FlowStep.SELECT_ROOM, floor=floor, room_id=None, contract_id=None
        ))
        await ctx.reply(constants.STAFF_NAV_FLOOR_SELECTED.format(floor=floor))
        return

    if not session or session.floor is None:
        await ctx.reply(constants.STAFF_NAV_FLOOR_FIRST)
        return

    room = await property_service.find_room(session.building_id, session.floor, value)
    if not room:
        await ctx.reply(constants.STAFF_NAV_ROOM_NOT_FOUND.format(number=value, floor=session.floor))
        return
    await _select_room(ctx, room)
