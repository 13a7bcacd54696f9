"""
app/flow/handlers/staff_moveout.py

Handles: Staff move-out intake

- "แจ้งย้าย" shows buildings with active contracts
- MO_BUILDING -> MO_FLOOR -> MO_ROOM, each gated on the previous level
- Water meter photo, then electric meter photo
- Stores a combined move-out record and sends a summary
"""

from dataclasses import replace

from app.core.logging import get_logger, LogContext
from app.flow.commands import MoveoutBuilding, MoveoutFloor, MoveoutRoom
from app.flow.context import FlowContext
from app.flow.states import FlowKind, FlowStep, StaffMoveoutSession
from app.services import maintenance_service, property_service
from app.services.media_service import get_media_service
from utils import constants
from utils.line_utils import (
    create_building_card,
    create_floor_card,
    create_room_card,
    create_moveout_summary_card,
)

logger = get_logger(__name__)

ALLOW = (FlowKind.STAFF_MOVEOUT,)


async def handle_staff_moveout_start(ctx: FlowContext) -> None:
    if not await ctx.require_staff():
        return
    if not await ctx.require_not_busy(allow=ALLOW):
        return

    buildings = await property_service.buildings_with_active_contracts()
    if not buildings:
        await ctx.reply(constants.STAFF_MOVEOUT_NO_BUILDINGS)
        return
    await ctx.reply(create_building_card(constants.STAFF_MOVEOUT_CHOOSE_BUILDING, buildings, "MO_BUILDING"))


async def handle_moveout_building(ctx: FlowContext, command: MoveoutBuilding) -> None:
    if not await ctx.require_staff():
        return
    if not await ctx.require_not_busy(allow=ALLOW):
        return

    building = await property_service.get_building(command.building_id)
    floors = await property_service.floors_with_active_contracts(command.building_id) if building else []
    if not floors:
        ctx.clear(FlowKind.STAFF_MOVEOUT)
        await ctx.reply(constants.STAFF_MOVEOUT_NO_FLOORS)
        return

    ctx.start(FlowKind.STAFF_MOVEOUT, StaffMoveoutSession(step=FlowStep.SELECT_FLOOR, building_id=building["_id"]))
    await ctx.reply(create_floor_card(
        f"{building.get('name') or building['_id']}: เลือกชั้น", building["_id"], floors, "MO_FLOOR"
    ))


async def handle_moveout_floor(ctx: FlowContext, command: MoveoutFloor) -> None:
    if not await ctx.require_staff():
        return

    session = ctx.session(FlowKind.STAFF_MOVEOUT)
    if not session or session.building_id != command.building_id:
        await ctx.reply(constants.STAFF_MOVEOUT_SELECT_FIRST)
        return

    rooms = await property_service.rooms_with_active_contracts(command.building_id, command.floor)
    if not rooms:
        await ctx.reply(constants.STAFF_MOVEOUT_NO_ROOMS)
        return

    session = ctx.session(FlowKind.STAFF_MOVEOUT)
    if not session or session.building_id != command.building_id:
        return

    ctx.start(FlowKind.STAFF_MOVEOUT, replace(session, step=FlowStep.SELECT_ROOM, floor=command.floor))
    await ctx.reply(create_room_card(f"ชั้น {command.floor}: เลือกห้อง", rooms, "MO_ROOM"))


async def handle_moveout_room(ctx: FlowContext, command: MoveoutRoom) -> None:
    if not await ctx.require_staff():
        return

    session = ctx.session(FlowKind.STAFF_MOVEOUT)
    if not session or session.floor is None:
        await ctx.reply(constants.STAFF_MOVEOUT_SELECT_FIRST)
        return

    room = await property_service.get_room(command.room_id)
    if not room or room.get("building_id") != session.building_id or room.get("floor") != session.floor:
        await ctx.reply(constants.STAFF_MOVEOUT_SELECT_FIRST)
        return

    contract = await property_service.find_active_contract_for_rooms([room["_id"]])
    if not contract:
        await ctx.reply(constants.STAFF_MOVEOUT_NO_TENANT)
        return
    info = await property_service.describe_contract(contract)

    session = ctx.session(FlowKind.STAFF_MOVEOUT)
    if not session:
        return

    ctx.start(FlowKind.STAFF_MOVEOUT, replace(
        session,
        step=FlowStep.WATER,
        room_id=room["_id"],
        room_number=str(room.get("number") or "-"),
        contract_id=contract["_id"],
        tenant_name=info["tenant_name"],
        tenant_phone=info["tenant_phone"],
        water_image_url=None,
    ))
    await ctx.reply(f"ห้อง {room.get('number')}\n{constants.STAFF_MOVEOUT_WATER_PROMPT}")


async def handle_moveout_image(ctx: FlowContext, message_id: str) -> None:
    """
    Handles a meter photo. WATER comes first, then ELECTRIC; the second
    photo completes the record.
    """
    session = ctx.session(FlowKind.STAFF_MOVEOUT)
    if not session or session.step not in (FlowStep.WATER, FlowStep.ELECTRIC):
        await ctx.reply(constants.STAFF_MOVEOUT_SELECT_FIRST)
        return

    media = await get_media_service().ingest(message_id)
    if media is None:
        ctx.sessions.extend(ctx.user_id, FlowKind.STAFF_MOVEOUT)
        await ctx.reply(constants.STAFF_MOVEOUT_IMAGE_FAILED)
        return

    session = ctx.session(FlowKind.STAFF_MOVEOUT)
    if not session or session.step not in (FlowStep.WATER, FlowStep.ELECTRIC):
        logger.info("Staff move-out session ended while storing a meter photo")
        return

    if session.step == FlowStep.WATER:
        ctx.start(FlowKind.STAFF_MOVEOUT, replace(session, step=FlowStep.ELECTRIC, water_image_url=media.url))
        await ctx.reply(constants.STAFF_MOVEOUT_WATER_RECEIVED)
        return

    ctx.clear(FlowKind.STAFF_MOVEOUT)
    description = "\n".join([
        f"WATER: {session.water_image_url}",
        f"ELECTRIC: {media.url}",
        f"TENANT: {session.tenant_name or '-'}",
        f"PHONE: {session.tenant_phone or '-'}",
    ])
    with LogContext(flow=FlowKind.STAFF_MOVEOUT.value):
        await maintenance_service.create_request(
            session.room_id,
            constants.MOVEOUT_RECORD_TITLE,
            description,
            reported_by=ctx.user_id,
        )
        logger.info(f"🚪 Staff move-out recorded for room {session.room_number}")

    summary = {
        "room_number": session.room_number,
        "tenant_name": session.tenant_name,
        "tenant_phone": session.tenant_phone,
    }
    await ctx.reply(
        constants.STAFF_MOVEOUT_SAVED,
        create_moveout_summary_card(summary, session.water_image_url, media.url),
    )
