from app.flow.dispatcher import dispatch_event
from app.flow.states import FlowKind, FlowStep, PaymentSession
from app.services.slip_service import SlipVerdict
from utils import constants

from helpers import STAFF, TENANT, image_event, postback_event, text_event


async def test_staff_payment_is_staff_only(env, dorm):
    await dispatch_event(text_event(TENANT, "รับชำระเงิน"))
    await dispatch_event(postback_event(TENANT, "PAY_BUILDING=bld1"))

    assert env.line.texts() == [constants.STAFF_ONLY_MESSAGE, constants.STAFF_ONLY_MESSAGE]
    assert env.store.get(TENANT, FlowKind.STAFF_PAYMENT) is None


async def test_start_shows_buildings_without_session(env, dorm):
    await dispatch_event(text_event(STAFF, "รับชำระเงิน"))

    assert env.line.alt_texts() == [constants.STAFF_PAY_CHOOSE_BUILDING]
    assert env.store.get(STAFF, FlowKind.STAFF_PAYMENT) is None


async def test_floor_before_building_is_rejected(env, dorm):
    await dispatch_event(postback_event(STAFF, "PAY_FLOOR=bld1:1"))

    assert env.line.texts() == [constants.STAFF_PAY_SELECT_BUILDING_FIRST]
    assert env.store.get(STAFF, FlowKind.STAFF_PAYMENT) is None


async def test_room_before_floor_is_rejected(env, dorm):
    await dispatch_event(postback_event(STAFF, "PAY_BUILDING=bld1"))
    await dispatch_event(postback_event(STAFF, "PAY_ROOM=room101"))

    assert constants.STAFF_PAY_SELECT_FLOOR_FIRST in env.line.texts(STAFF)
    assert env.store.get(STAFF, FlowKind.PAYMENT) is None


async def test_full_drilldown_arms_payment_and_takes_slip(env, dorm):
    await dispatch_event(postback_event(STAFF, "PAY_BUILDING=bld1"))
    session = env.store.get(STAFF, FlowKind.STAFF_PAYMENT)
    assert session.step == FlowStep.SELECT_FLOOR
    assert session.building_id == "bld1"

    await dispatch_event(postback_event(STAFF, "PAY_FLOOR=bld1:1"))
    session = env.store.get(STAFF, FlowKind.STAFF_PAYMENT)
    assert session.step == FlowStep.SELECT_ROOM
    assert session.floor == 1

    await dispatch_event(postback_event(STAFF, "PAY_ROOM=room101"))
    session = env.store.get(STAFF, FlowKind.STAFF_PAYMENT)
    assert session.step == FlowStep.AWAIT_SLIP
    assert session.contract_id == "contract1"
    assert env.store.get(STAFF, FlowKind.PAYMENT) == PaymentSession(invoice_id="inv1")

    env.verifier.verdict = SlipVerdict(ok=True, message="OK", amount=2500.0)
    await dispatch_event(image_event(STAFF, "m1"))
    await env.outbound.drain()

    assert (await env.db.invoices.find_one({"_id": "inv1"}))["status"] == "PAID"
    assert env.store.get(STAFF, FlowKind.PAYMENT) is None
    assert env.store.get(STAFF, FlowKind.STAFF_PAYMENT) is None


async def test_floor_without_unpaid_rooms(env, dorm):
    await dispatch_event(postback_event(STAFF, "PAY_BUILDING=bld1"))
    await dispatch_event(postback_event(STAFF, "PAY_FLOOR=bld1:3"))

    assert constants.STAFF_PAY_NO_ROOMS in env.line.texts(STAFF)
    assert env.store.get(STAFF, FlowKind.STAFF_PAYMENT).step == FlowStep.SELECT_FLOOR


async def test_back_to_buildings_clears_drilldown(env, dorm):
    await dispatch_event(postback_event(STAFF, "PAY_BUILDING=bld1"))
    await dispatch_event(postback_event(STAFF, "PAY_BACK=BUILDINGS"))

    assert env.store.get(STAFF, FlowKind.STAFF_PAYMENT) is None
    assert constants.STAFF_PAY_CHOOSE_BUILDING in env.line.alt_texts()


async def test_back_to_floors_blocked_during_staff_moveout(env, dorm):
    await dispatch_event(postback_event(STAFF, "MO_BUILDING=bld1"))
    await dispatch_event(postback_event(STAFF, "PAY_BACK=FLOORS:bld1"))

    assert env.store.get(STAFF, FlowKind.STAFF_MOVEOUT).step == FlowStep.SELECT_FLOOR
    assert env.store.get(STAFF, FlowKind.STAFF_PAYMENT) is None
    assert env.line.texts()[-1] == constants.BUSY_MESSAGE


async def test_text_navigation(env, dorm):
    await dispatch_event(text_event(STAFF, "ห้อง 101"))
    await dispatch_event(text_event(STAFF, "ตึก A"))
    await dispatch_event(text_event(STAFF, "ชั้น 1"))
    await dispatch_event(text_event(STAFF, "ห้อง 999"))
    await dispatch_event(text_event(STAFF, "ห้อง 101"))
    await env.outbound.drain()

    texts = env.line.texts(STAFF)
    assert texts[:4] == [
        constants.STAFF_NAV_FLOOR_FIRST,
        constants.STAFF_NAV_BUILDING_SELECTED.format(name="ตึก A"),
        constants.STAFF_NAV_FLOOR_SELECTED.format(floor=1),
        constants.STAFF_NAV_ROOM_NOT_FOUND.format(number="999", floor=1),
    ]
    assert env.store.get(STAFF, FlowKind.PAYMENT) == PaymentSession(invoice_id="inv1")


async def test_text_navigation_ignored_for_tenants(env, dorm):
    await dispatch_event(text_event(TENANT, "ตึก A"))
    assert env.line.texts() == [constants.STAFF_ONLY_MESSAGE]
