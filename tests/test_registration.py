from app.flow.dispatcher import dispatch_event
from app.flow.states import FlowKind
from app.services.link_service import get_link_store
from utils import constants

from helpers import TENANT, postback_event, text_event

NEWCOMER = "Unewcomer"


async def test_register_session_links_tenant(env, dorm):
    await dispatch_event(text_event(NEWCOMER, "REGISTERSISOM"))
    assert env.store.get(NEWCOMER, FlowKind.REGISTRATION) is not None

    await dispatch_event(text_event(NEWCOMER, "082-345-6789"))

    tenant = await env.db.tenants.find_one({"_id": "tenant3"})
    assert tenant["line_user_id"] == NEWCOMER
    assert env.store.get(NEWCOMER, FlowKind.REGISTRATION) is None
    assert env.line.texts() == [constants.REGISTER_PHONE_PROMPT, constants.REGISTER_SUCCESS.format(room="301")]


async def test_register_session_when_already_linked(env, dorm):
    await dispatch_event(text_event(TENANT, "REGISTERSISOM"))

    assert env.line.texts() == [constants.REGISTER_ALREADY_LINKED]
    assert env.store.get(TENANT, FlowKind.REGISTRATION) is None


async def test_register_command(env, dorm):
    await dispatch_event(text_event(NEWCOMER, "register 0812345678"))
    await dispatch_event(text_event(NEWCOMER, "REGISTER 12345"))
    await dispatch_event(text_event(NEWCOMER, "REGISTER +66823456789"))

    assert env.line.texts() == [
        constants.REGISTER_PHONE_TAKEN,
        constants.REGISTER_USAGE,
        constants.REGISTER_SUCCESS.format(room="301"),
    ]
    assert (await env.db.tenants.find_one({"_id": "tenant1"}))["line_user_id"] == TENANT


async def test_register_room_contact(env, dorm):
    await env.db.room_contacts.insert_one(
        {"_id": "contact1", "room_id": "room102", "phone": "0861111111", "line_user_id": None}
    )

    await dispatch_event(text_event(NEWCOMER, "REGISTER 0861111111"))

    assert (await env.db.room_contacts.find_one({"_id": "contact1"}))["line_user_id"] == NEWCOMER
    assert env.line.texts() == [constants.REGISTER_SUCCESS.format(room="102")]


async def test_unknown_phone(env, dorm):
    await dispatch_event(text_event(NEWCOMER, "REGISTER 0890000000"))
    assert env.line.texts() == [constants.REGISTER_PHONE_NOT_FOUND]


async def test_bare_phone_files_link_request_and_accept(env, dorm):
    await dispatch_event(text_event(NEWCOMER, "0823456789"))

    assert env.line.texts() == [constants.LINK_REQUEST_SENT.format(room="301")]
    pending = get_link_store().list()["room301"]
    assert [(r["user_id"], r["tenant_id"]) for r in pending] == [(NEWCOMER, "tenant3")]

    await dispatch_event(postback_event(NEWCOMER, "LINK_ACCEPT=room301:tenant3"))

    assert (await env.db.tenants.find_one({"_id": "tenant3"}))["line_user_id"] == NEWCOMER
    assert get_link_store().list() == {}
    assert env.line.texts()[-1] == constants.LINK_ACCEPTED


async def test_repeated_request_replaces_earlier_one(env, dorm):
    await dispatch_event(text_event(NEWCOMER, "0823456789"))
    await dispatch_event(text_event(NEWCOMER, "+66823456789"))
    await dispatch_event(text_event("Uother", "0823456789"))

    pending = get_link_store().list()["room301"]
    assert [r["user_id"] for r in pending] == [NEWCOMER, "Uother"]


async def test_link_reject(env, dorm):
    await dispatch_event(text_event(NEWCOMER, "0823456789"))
    await dispatch_event(postback_event(NEWCOMER, "LINK_REJECT=room301"))
    await dispatch_event(postback_event(NEWCOMER, "LINK_ACCEPT=room301:tenant3"))

    texts = env.line.texts()
    assert texts[-2:] == [constants.LINK_REJECTED, constants.LINK_REQUEST_MISSING]
    assert (await env.db.tenants.find_one({"_id": "tenant3"}))["line_user_id"] is None


async def test_own_phone_is_already_linked(env, dorm):
    await dispatch_event(text_event(TENANT, "0812345678"))
    assert env.line.texts() == [constants.REGISTER_ALREADY_LINKED]


async def test_staff_registration_with_code(env, dorm):
    await env.db.users.insert_one({
        "_id": "user-new", "role": "STAFF", "phone": "0877777777",
        "permissions": [], "line_user_id": None, "verify_code": "123456",
    })

    await dispatch_event(text_event(NEWCOMER, "REGISTERSTAFFSISOM 0877777777"))
    assert env.store.get(NEWCOMER, FlowKind.STAFF_VERIFY) is not None

    await dispatch_event(text_event(NEWCOMER, "000000"))
    await dispatch_event(text_event(NEWCOMER, "123456"))

    account = await env.db.users.find_one({"_id": "user-new"})
    assert account["line_user_id"] == NEWCOMER
    assert account["verify_code"] is None
    assert env.roles.is_staff(NEWCOMER)
    assert env.store.get(NEWCOMER, FlowKind.STAFF_VERIFY) is None
    assert env.line.texts() == [
        constants.STAFF_REGISTER_CODE_PROMPT,
        constants.STAFF_REGISTER_CODE_INVALID,
        constants.STAFF_REGISTER_SUCCESS,
    ]


async def test_staff_registration_rejects_unknown_phone(env, dorm):
    await dispatch_event(text_event(NEWCOMER, "REGISTERSTAFFSISOM 0812345678"))
    await dispatch_event(text_event(NEWCOMER, "REGISTERSTAFFSISOM"))

    assert env.line.texts() == [constants.STAFF_REGISTER_NOT_FOUND, constants.STAFF_REGISTER_USAGE]


async def test_code_without_session_is_ignored(env, dorm):
    await dispatch_event(text_event(NEWCOMER, "123456"))
    assert env.line.texts() == []
