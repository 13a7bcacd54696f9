from datetime import date, timedelta

from app.flow.dispatcher import dispatch_event
from app.flow.handlers.tenant_moveout import notify_moveout_due, resolve_moveout_date
from app.flow.states import FlowKind, FlowStep
from utils import constants
from utils.time_utils import add_months, bangkok_today

from helpers import STAFF, TENANT, postback_event, text_event


def test_resolve_moveout_date():
    today = date(2024, 2, 10)
    assert resolve_moveout_date("15 วัน", today) == date(2024, 2, 25)
    assert resolve_moveout_date("สิ้นเดือน", today) == date(2024, 2, 29)


async def test_start_offers_plan_card(env, dorm):
    await dispatch_event(text_event(TENANT, "แจ้งย้ายออก"))

    session = env.store.get(TENANT, FlowKind.TENANT_MOVEOUT)
    assert session.step == FlowStep.WAIT_PLAN
    assert session.room_number == "101"
    assert env.line.alt_texts() == ["แจ้งย้ายออก"]


async def test_staff_are_redirected(env, dorm):
    await dispatch_event(text_event(STAFF, "แจ้งย้ายออก"))

    assert env.line.texts() == [constants.STAFF_USE_STAFF_MOVEOUT]
    assert env.store.get(STAFF, FlowKind.TENANT_MOVEOUT) is None


async def test_unreadable_plan_repeats_prompt(env, dorm):
    await dispatch_event(text_event(TENANT, "แจ้งย้ายออก"))
    await dispatch_event(text_event(TENANT, "ยังไม่แน่ใจ"))
    await dispatch_event(text_event(TENANT, "อาทิตย์หน้า"))
    await env.outbound.drain()

    assert env.line.texts(TENANT) == [constants.TENANT_MOVEOUT_PLAN_RETRY] * 2
    assert env.store.get(TENANT, FlowKind.TENANT_MOVEOUT).step == FlowStep.WAIT_PLAN


async def test_plan_and_reason_create_record(env, dorm):
    await dispatch_event(text_event(TENANT, "แจ้งย้ายออก"))
    await dispatch_event(text_event(TENANT, "ย้ายออกอีก 15 วัน"))

    session = env.store.get(TENANT, FlowKind.TENANT_MOVEOUT)
    expected = (bangkok_today() + timedelta(days=15)).isoformat()
    assert session.step == FlowStep.WAIT_REASON
    assert session.moveout_date == expected

    await dispatch_event(text_event(TENANT, "ย้ายที่ทำงาน"))

    record = await env.db.maintenance_requests.find_one({"title": constants.MOVEOUT_RECORD_TITLE})
    assert record["room_id"] == "room101"
    assert record["reported_by"] == TENANT
    assert record["description"].splitlines() == [
        f"วันที่ย้ายออก: {expected}",
        "ย้ายออกภายใน: 15 วัน",
        "เหตุผล: ย้ายที่ทำงาน",
        "TENANT: สมชาย",
        "PHONE: 0812345678",
    ]
    assert env.store.get(TENANT, FlowKind.TENANT_MOVEOUT) is None
    assert (await env.db.rooms.find_one({"_id": "room101"}))["status"] == "OCCUPIED"
    assert constants.TENANT_MOVEOUT_SAVED in env.line.texts()


async def test_date_picker(env, dorm):
    today = bangkok_today()
    await dispatch_event(text_event(TENANT, "แจ้งย้ายออก"))

    too_late = add_months(today, 3).isoformat()
    await dispatch_event(postback_event(TENANT, "TENANT_MOVEOUT_DATE", {"date": too_late}))
    assert env.store.get(TENANT, FlowKind.TENANT_MOVEOUT).step == FlowStep.WAIT_PLAN

    picked = today + timedelta(days=3)
    await dispatch_event(postback_event(TENANT, "TENANT_MOVEOUT_DATE", {"date": picked.isoformat()}))

    session = env.store.get(TENANT, FlowKind.TENANT_MOVEOUT)
    assert session.step == FlowStep.WAIT_REASON
    assert session.plan == "3 วัน"
    assert session.moveout_date == picked.isoformat()


async def test_date_picker_without_session(env, dorm):
    await dispatch_event(postback_event(TENANT, "TENANT_MOVEOUT_DATE", {"date": "2024-06-01"}))
    assert env.line.texts() == [constants.TENANT_MOVEOUT_NO_SESSION]


async def test_moveout_days_sets_refund_period(env, dorm):
    await dispatch_event(postback_event(TENANT, "MOVEOUT_DAYS=14"))

    contract = await env.db.contracts.find_one({"_id": "contract1"})
    assert contract["deposit_refund_days"] == 14
    assert env.line.texts() == [constants.MOVEOUT_DAYS_RECORDED.format(days=14)]


async def test_notify_moveout_due(env, dorm):
    day = date(2024, 6, 30)
    await env.db.maintenance_requests.insert_one({
        "_id": "mo1", "room_id": "room101", "title": constants.MOVEOUT_RECORD_TITLE,
        "description": "วันที่ย้ายออก: 2024-06-30\nย้ายออกภายใน: 10 วัน",
        "status": "PENDING",
    })

    result = await notify_moveout_due(day)
    await env.outbound.drain()

    assert result == {"date": "2024-06-30", "rooms": ["101"], "notified": 1}
    assert env.line.texts(STAFF) == [
        constants.MOVEOUT_DUE_HEADER.format(date="2024-06-30") + "\nห้อง 101"
    ]
    assert await notify_moveout_due(date(2024, 7, 1)) == {"date": "2024-07-01", "rooms": [], "notified": 0}
