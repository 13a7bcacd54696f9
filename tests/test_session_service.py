import asyncio

import pytest

from app.flow.states import (
    FlowKind,
    FlowStep,
    MaintenanceAckSession,
    PaymentSession,
    StaffPaymentSession,
    StaffVerifySession,
)
from app.services.session_service import SessionStore
from utils import constants


def collecting_store(**kwargs):
    sent = []

    async def notifier(user_id, text):
        sent.append((user_id, text))

    return SessionStore(notifier=notifier, **kwargs), sent


async def test_start_replaces_previous_session_without_leaking_timer():
    store, sent = collecting_store(default_ttl=0.05, ack_ttl=0.05)

    store.start("U1", FlowKind.PAYMENT, PaymentSession(invoice_id="inv1"))
    store.start("U1", FlowKind.PAYMENT, PaymentSession(invoice_id="inv2"), ttl=10)

    await asyncio.sleep(0.1)
    assert store.get("U1", FlowKind.PAYMENT).invoice_id == "inv2"
    assert sent == []
    store.reset()


async def test_session_without_valid_step_is_rejected():
    store = SessionStore(default_ttl=10, ack_ttl=10)

    with pytest.raises(ValueError):
        store.start("U1", FlowKind.PAYMENT, StaffVerifySession(account_id="a1", phone="0800000000"))

    with pytest.raises(ValueError):
        store.start("U1", FlowKind.PAYMENT, object())

    assert store.get("U1", FlowKind.PAYMENT) is None


async def test_expiry_clears_and_notifies():
    store, sent = collecting_store(default_ttl=0.02, ack_ttl=10)
    store.start("U1", FlowKind.PAYMENT, PaymentSession(invoice_id="inv1"))

    await asyncio.sleep(0.1)

    assert store.get("U1", FlowKind.PAYMENT) is None
    assert sent == [("U1", constants.EXPIRED_PAYMENT)]


async def test_silent_flow_expires_without_notice():
    store, sent = collecting_store(default_ttl=0.02, ack_ttl=10)
    store.start("U1", FlowKind.STAFF_VERIFY, StaffVerifySession(account_id="a1", phone="0800000000"))

    await asyncio.sleep(0.1)

    assert store.get("U1", FlowKind.STAFF_VERIFY) is None
    assert sent == []


async def test_ack_sessions_use_ack_timeout():
    store, _ = collecting_store(default_ttl=10, ack_ttl=0.02)
    store.start("U1", FlowKind.MAINTENANCE_ACK, MaintenanceAckSession(request_id="m1"))
    store.start("U1", FlowKind.PAYMENT, PaymentSession(invoice_id="inv1"))

    await asyncio.sleep(0.1)

    assert store.get("U1", FlowKind.MAINTENANCE_ACK) is None
    assert store.get("U1", FlowKind.PAYMENT) is not None
    store.reset()


async def test_extend_rearms_timer():
    store, _ = collecting_store(default_ttl=0.08, ack_ttl=10)
    store.start("U1", FlowKind.PAYMENT, PaymentSession(invoice_id="inv1"))

    await asyncio.sleep(0.05)
    assert store.extend("U1", FlowKind.PAYMENT) is True
    await asyncio.sleep(0.05)

    assert store.get("U1", FlowKind.PAYMENT) is not None
    assert store.extend("U2", FlowKind.PAYMENT) is False
    store.reset()


async def test_clear_cancels_timer():
    store, sent = collecting_store(default_ttl=0.02, ack_ttl=10)
    store.start("U1", FlowKind.PAYMENT, PaymentSession(invoice_id="inv1"))
    store.clear("U1", FlowKind.PAYMENT)
    store.clear("U1", FlowKind.PAYMENT)

    await asyncio.sleep(0.1)
    assert sent == []


async def test_busy_check_honours_allow_list_and_non_blocking_flows():
    store = SessionStore(default_ttl=10, ack_ttl=10)
    store.start("U1", FlowKind.MAINTENANCE_ACK, MaintenanceAckSession(request_id="m1"))
    store.start("U1", FlowKind.STAFF_VERIFY, StaffVerifySession(account_id="a1", phone="0800000000"))
    assert store.is_busy("U1") is None

    store.start("U1", FlowKind.STAFF_PAYMENT, StaffPaymentSession(step=FlowStep.SELECT_FLOOR, building_id="bld1"))
    assert store.is_busy("U1") == FlowKind.STAFF_PAYMENT
    assert store.is_busy("U1", allow=[FlowKind.STAFF_PAYMENT]) is None
    assert store.is_busy("U2") is None

    stats = store.stats()
    assert stats["STAFF_PAYMENT"] == 1
    assert stats["PAYMENT"] == 0
    assert store.holders(FlowKind.MAINTENANCE_ACK) == ["U1"]
    store.reset()
