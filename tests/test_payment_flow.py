from datetime import datetime

from app.flow.dispatcher import dispatch_event
from app.flow.states import FlowKind, PaymentSession
from app.services.slip_service import SlipVerdict
from utils import constants

from helpers import STAFF, TENANT, image_event, text_event


async def arm_payment(env):
    await dispatch_event(text_event(TENANT, "ชำระค่าห้อง"))
    await env.outbound.drain()


async def test_pay_rent_arms_context_and_sends_pay_info(env, dorm):
    await arm_payment(env)

    session = env.store.get(TENANT, FlowKind.PAYMENT)
    assert session == PaymentSession(invoice_id="inv1")
    assert any(alt.startswith("ชำระค่าห้อง 101") for alt in env.line.alt_texts())
    assert constants.PAY_SEND_SLIP_PROMPT in env.line.texts(TENANT)


async def test_pay_rent_for_missing_period(env, dorm):
    await dispatch_event(text_event(TENANT, "ชำระค่าห้อง มกราคม 2023"))

    assert env.line.texts() == [constants.PAY_NO_INVOICE_FOR_PERIOD.format(period="มกราคม 2023")]
    assert env.store.get(TENANT, FlowKind.PAYMENT) is None


async def test_pay_rent_without_tenant(env, dorm):
    await dispatch_event(text_event("Ustranger", "ชำระค่าห้อง"))
    assert env.line.texts() == [constants.PAY_NO_TENANT]


async def test_verified_full_payment_marks_invoice_paid(env, dorm):
    await arm_payment(env)
    env.verifier.verdict = SlipVerdict(ok=True, message="OK", amount=2500.0)

    await dispatch_event(image_event(TENANT, "m1"))
    await env.outbound.drain()

    invoice = await env.db.invoices.find_one({"_id": "inv1"})
    payment = await env.db.payments.find_one({"invoice_id": "inv1"})
    assert invoice["status"] == "PAID"
    assert payment["status"] == "VERIFIED"
    assert payment["amount"] == 2500.0
    assert payment["slip_image_url"] == "https://dorm.test/api/media/m1.jpg"
    assert env.store.get(TENANT, FlowKind.PAYMENT) is None
    assert constants.SLIP_TITLE_SUCCESS in env.line.alt_texts(TENANT)
    assert constants.PAY_SLIP_RECEIVED.format(room="101") in env.line.texts()
    assert env.verifier.calls[0] == ("url", "https://dorm.test/api/media/m1.jpg", 2500.0)


async def test_partial_payment_keeps_invoice_unpaid(env, dorm):
    await arm_payment(env)
    env.verifier.verdict = SlipVerdict(ok=True, message="OK", amount=1500.0)

    await dispatch_event(image_event(TENANT, "m1"))
    await env.outbound.drain()

    invoice = await env.db.invoices.find_one({"_id": "inv1"})
    assert invoice["status"] == "SENT"
    partial = [t for t in env.line.texts(TENANT) if t.startswith("ได้รับยอดชำระ")]
    assert len(partial) == 1
    assert "1,500" in partial[0]
    assert "1,000" in partial[0]
    assert constants.SLIP_TITLE_SUCCESS not in env.line.alt_texts(TENANT)


async def test_duplicate_slip_is_recorded_as_pending(env, dorm):
    env.verifier.verdict = SlipVerdict(ok=False, message="Duplicate slip", duplicate=True)

    await dispatch_event(image_event(TENANT, "m1"))
    await env.outbound.drain()

    invoice = await env.db.invoices.find_one({"_id": "inv1"})
    payment = await env.db.payments.find_one({"invoice_id": "inv1"})
    assert invoice["status"] == "SENT"
    assert payment["status"] == "PENDING"
    assert payment["amount"] == 2500.0
    assert constants.SLIP_TITLE_DUPLICATE in env.line.alt_texts(TENANT)
    assert [call[0] for call in env.verifier.calls] == ["url", "data"]


async def test_tenant_cannot_pay_someone_elses_invoice_from_context(env, dorm):
    await env.db.invoices.insert_one({
        "_id": "inv3", "contract_id": "contract3", "month": 5, "year": 2024,
        "total_amount": 3000, "status": "SENT", "created_at": datetime(2024, 5, 2),
    })
    env.store.start(TENANT, FlowKind.PAYMENT, PaymentSession(invoice_id="inv3"))
    env.verifier.verdict = SlipVerdict(ok=True, message="OK", amount=2500.0)

    await dispatch_event(image_event(TENANT, "m1"))
    await env.outbound.drain()

    assert (await env.db.invoices.find_one({"_id": "inv3"}))["status"] == "SENT"
    assert (await env.db.invoices.find_one({"_id": "inv1"}))["status"] == "PAID"


async def test_no_invoice_found(env, dorm):
    await env.db.tenants.update_one({"_id": "tenant3"}, {"$set": {"line_user_id": "Unobill"}})
    env.verifier.verdict = SlipVerdict(ok=True, message="OK", amount=2500.0)

    await dispatch_event(image_event("Unobill", "m1"))
    await env.outbound.drain()

    assert constants.PAY_INVOICE_NOT_FOUND in env.line.texts()
    assert await env.db.payments.count_documents({}) == 0
    assert (await env.db.invoices.find_one({"_id": "inv1"}))["status"] == "SENT"


async def test_unknown_user_slip_is_turned_away(env, dorm):
    env.verifier.verdict = SlipVerdict(ok=True, message="OK", amount=2500.0)

    await dispatch_event(image_event("Ustranger", "m1"))
    await env.outbound.drain()

    assert env.line.texts() == [constants.PAY_NO_TENANT]
    assert env.media.ingested == []
    assert env.verifier.calls == []
    assert await env.db.payments.count_documents({}) == 0
    assert (await env.db.invoices.find_one({"_id": "inv1"}))["status"] == "SENT"


async def test_tenant_without_contract_cannot_match_by_amount(env, dorm):
    await env.db.tenants.insert_one({"_id": "tenant9", "name": "X", "phone": "0800000009", "line_user_id": "Unocontract"})
    env.verifier.verdict = SlipVerdict(ok=True, message="OK", amount=2500.0)

    await dispatch_event(image_event("Unocontract", "m1"))
    await env.outbound.drain()

    assert env.line.texts() == [constants.NO_ACTIVE_CONTRACT]
    assert env.verifier.calls == []
    assert await env.db.payments.count_documents({}) == 0
    assert (await env.db.invoices.find_one({"_id": "inv1"}))["status"] == "SENT"


async def test_media_failure_keeps_payment_context(env, dorm):
    await arm_payment(env)
    env.media.fail = True

    await dispatch_event(image_event(TENANT, "m1"))
    await env.outbound.drain()

    assert constants.PAY_SLIP_SAVE_FAILED in env.line.texts()
    assert env.store.get(TENANT, FlowKind.PAYMENT) is not None
    assert await env.db.payments.count_documents({}) == 0


async def test_staff_slip_falls_back_to_global_unpaid(env, dorm):
    env.verifier.verdict = SlipVerdict(ok=True, message="OK", amount=2500.0)

    await dispatch_event(image_event(STAFF, "m1"))
    await env.outbound.drain()

    assert (await env.db.invoices.find_one({"_id": "inv1"}))["status"] == "PAID"


async def test_send_slip_without_context(env, dorm):
    await dispatch_event(text_event(TENANT, "ส่งสลิป"))
    assert env.line.texts() == [constants.PAY_NO_CONTEXT]


async def test_unpaid_lists(env, dorm):
    await dispatch_event(text_event(TENANT, "บิลคงค้าง"))
    await dispatch_event(text_event("Ustranger", "ห้องค้างชำระ"))
    await dispatch_event(text_event(STAFF, "ห้องค้างชำระ"))

    texts = env.line.texts()
    assert texts[0] == "ห้อง 101 | พฤษภาคม 2024 | 2,500 บาท"
    assert texts[1] == constants.STAFF_ONLY_MESSAGE
    assert texts[2].startswith(constants.STAFF_UNPAID_HEADER)

