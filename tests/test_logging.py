import asyncio
import logging

import pytest

from app.core.logging import ContextFilter, LogContext, get_log_context, get_logger
from app.services import property_service


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []
        self.addFilter(ContextFilter())

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    handler = RecordingHandler()
    logger = logging.getLogger("dormline")
    old_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler
    logger.removeHandler(handler)
    logger.setLevel(old_level)


def test_context_fields_are_attached_and_removed(captured):
    logger = get_logger("tests.logging")

    with LogContext(user_id="U1", flow="PAYMENT"):
        logger.info("inside")
    logger.info("outside")

    inside, outside = captured.records
    assert inside.user_id == "U1"
    assert inside.flow == "PAYMENT"
    assert not hasattr(outside, "user_id")


def test_nested_context_merges_and_restores():
    with LogContext(user_id="U1"):
        with LogContext(flow="MAINTENANCE"):
            assert get_log_context() == {"user_id": "U1", "flow": "MAINTENANCE"}
        assert get_log_context() == {"user_id": "U1"}
    assert get_log_context() == {}


def test_explicit_extra_inside_context_does_not_raise(captured):
    logger = get_logger("tests.logging")

    with LogContext(user_id="U1"):
        logger.warning("push failed", extra={"user_id": "U2"})

    assert captured.records[-1].user_id == "U2"


async def test_concurrent_tasks_keep_their_own_context(captured):
    logger = get_logger("tests.logging")
    factory = logging.getLogRecordFactory()
    seen = {}

    async def handle(user_id, delay):
        with LogContext(user_id=user_id):
            await asyncio.sleep(delay)
            seen[user_id] = get_log_context()["user_id"]
            logger.info("done")

    await asyncio.gather(handle("A", 0.01), handle("B", 0.02))

    assert seen == {"A": "A", "B": "B"}
    assert sorted(r.user_id for r in captured.records) == ["A", "B"]
    assert get_log_context() == {}
    assert logging.getLogRecordFactory() is factory

    logger.info("after", extra={"user_id": "U9"})
    assert captured.records[-1].user_id == "U9"


async def test_linking_inside_event_context(env, dorm):
    with LogContext(user_id="Unew"):
        await property_service.link_tenant("tenant3", "Unew")

    tenant = await env.db.tenants.find_one({"_id": "tenant3"})
    assert tenant["line_user_id"] == "Unew"
