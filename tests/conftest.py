from datetime import datetime
from types import SimpleNamespace

import pytest
from mongomock_motor import AsyncMongoMockClient

import app.db.mongo as mongo
from app.core.config import settings
from app.services.line_service import OutboundDispatcher, set_dispatcher
from app.services.link_service import get_link_store
from app.services.media_service import set_media_service
from app.services.role_service import RoleResolver, set_role_resolver
from app.services.session_service import SessionStore, set_session_store
from app.services.slip_service import set_slip_verifier

from helpers import ADMIN, STAFF, TENANT, FakeLineClient, FakeMedia, FakeVerifier


@pytest.fixture
def db():
    mongo._database = AsyncMongoMockClient()["dormline_test"]
    yield mongo._database
    mongo._database = None


@pytest.fixture
def line_client():
    return FakeLineClient()


@pytest.fixture
async def outbound(line_client):
    dispatcher = OutboundDispatcher(line_client, track_usage=False)
    set_dispatcher(dispatcher)
    yield dispatcher
    await dispatcher.stop()
    set_dispatcher(None)


@pytest.fixture
async def store():
    sessions = SessionStore(default_ttl=180, ack_ttl=120)
    set_session_store(sessions)
    yield sessions
    sessions.reset()
    set_session_store(None)


@pytest.fixture
def roles():
    resolver = RoleResolver(admin_ids=[ADMIN], staff_ids=[STAFF])
    set_role_resolver(resolver)
    yield resolver
    set_role_resolver(None)


@pytest.fixture
def media():
    fake = FakeMedia()
    set_media_service(fake)
    yield fake
    set_media_service(None)


@pytest.fixture
def verifier():
    fake = FakeVerifier()
    set_slip_verifier(fake)
    yield fake
    set_slip_verifier(None)


@pytest.fixture
def env(db, line_client, outbound, store, roles, media, verifier, monkeypatch):
    monkeypatch.setattr(settings, "SLIP_RESULT_DELAY_SECONDS", 0.0)
    get_link_store().reset()
    yield SimpleNamespace(
        db=db, line=line_client, outbound=outbound, store=store,
        roles=roles, media=media, verifier=verifier,
    )
    get_link_store().reset()


@pytest.fixture
async def dorm(db):
    """
    One building (2 floors), a linked tenant in room 101 with an unpaid
    2500 invoice, and a staff account with the line_notify permission.
    """
    await db.buildings.insert_one({"_id": "bld1", "code": "A", "name": "ตึก A"})
    await db.rooms.insert_many([
        {"_id": "room101", "building_id": "bld1", "floor": 1, "number": "101", "status": "OCCUPIED"},
        {"_id": "room102", "building_id": "bld1", "floor": 1, "number": "102", "status": "VACANT"},
        {"_id": "room301", "building_id": "bld1", "floor": 3, "number": "301", "status": "OCCUPIED"},
    ])
    await db.tenants.insert_many([
        {"_id": "tenant1", "name": "สมชาย", "phone": "0812345678", "line_user_id": TENANT},
        {"_id": "tenant3", "name": "สมหญิง", "phone": "0823456789", "line_user_id": None},
    ])
    await db.contracts.insert_many([
        {"_id": "contract1", "tenant_id": "tenant1", "room_id": "room101",
         "is_active": True, "start_date": datetime(2024, 1, 1)},
        {"_id": "contract3", "tenant_id": "tenant3", "room_id": "room301",
         "is_active": True, "start_date": datetime(2024, 2, 1)},
    ])
    await db.invoices.insert_one({
        "_id": "inv1", "contract_id": "contract1", "month": 5, "year": 2024,
        "total_amount": 2500, "status": "SENT", "created_at": datetime(2024, 5, 1),
    })
    await db.users.insert_one({
        "_id": "user-staff", "role": "STAFF", "phone": "0899999999",
        "permissions": ["line_notify"], "line_user_id": STAFF, "verify_code": None,
    })
    return db

