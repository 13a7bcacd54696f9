from app.flow.dispatcher import dispatch_event
from app.flow.states import FlowKind, FlowStep
from utils import constants

from helpers import STAFF, TENANT, image_event, postback_event, text_event


async def walk_to_room(room_id="room301", floor=3):
    await dispatch_event(text_event(STAFF, "แจ้งย้าย"))
    await dispatch_event(postback_event(STAFF, "MO_BUILDING=bld1"))
    await dispatch_event(postback_event(STAFF, f"MO_FLOOR=bld1:{floor}"))
    await dispatch_event(postback_event(STAFF, f"MO_ROOM={room_id}"))


async def test_staff_moveout_is_staff_only(env, dorm):
    await dispatch_event(text_event(TENANT, "แจ้งย้าย"))
    assert env.line.texts() == [constants.STAFF_ONLY_MESSAGE]


async def test_room_requires_floor(env, dorm):
    await dispatch_event(postback_event(STAFF, "MO_ROOM=room301"))
    await dispatch_event(postback_event(STAFF, "MO_FLOOR=bld1:3"))

    assert env.line.texts() == [constants.STAFF_MOVEOUT_SELECT_FIRST] * 2
    assert env.store.get(STAFF, FlowKind.STAFF_MOVEOUT) is None


async def test_meter_photos_create_record(env, dorm):
    await walk_to_room()

    session = env.store.get(STAFF, FlowKind.STAFF_MOVEOUT)
    assert session.step == FlowStep.WATER
    assert session.tenant_name == "สมหญิง"

    await dispatch_event(image_event(STAFF, "water"))
    assert env.store.get(STAFF, FlowKind.STAFF_MOVEOUT).step == FlowStep.ELECTRIC

    await dispatch_event(image_event(STAFF, "electric"))
    await env.outbound.drain()

    record = await env.db.maintenance_requests.find_one({"room_id": "room301"})
    assert record["title"] == constants.MOVEOUT_RECORD_TITLE
    assert record["reported_by"] == STAFF
    assert record["description"].splitlines() == [
        "WATER: https://dorm.test/api/media/water.jpg",
        "ELECTRIC: https://dorm.test/api/media/electric.jpg",
        "TENANT: สมหญิง",
        "PHONE: 0823456789",
    ]
    assert env.store.get(STAFF, FlowKind.STAFF_MOVEOUT) is None
    assert constants.STAFF_MOVEOUT_SAVED in env.line.texts()
    assert "สรุปแจ้งย้ายออก ห้อง 301" in env.line.alt_texts()
    assert await env.db.payments.count_documents({}) == 0
    assert env.verifier.calls == []


async def test_failed_meter_photo_keeps_step(env, dorm):
    await walk_to_room()
    env.media.fail = True

    await dispatch_event(image_event(STAFF, "water"))

    assert constants.STAFF_MOVEOUT_IMAGE_FAILED in env.line.texts()
    assert env.store.get(STAFF, FlowKind.STAFF_MOVEOUT).step == FlowStep.WATER


async def test_staff_is_busy_during_moveout(env, dorm):
    await walk_to_room()

    await dispatch_event(text_event(STAFF, "รับชำระเงิน"))

    assert env.line.texts()[-1] == constants.BUSY_MESSAGE
