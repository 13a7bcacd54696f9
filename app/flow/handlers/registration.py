"""
app/flow/handlers/registration.py

Handles: Account registration and linking

- REGISTERSISOM, then a phone number
- REGISTER <phone> (direct)
- Bare phone number: link request with accept / reject quick replies
- REGISTERSTAFFSISOM <phone>, then the six-digit verify code
"""

from typing import Optional

from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger
from app.flow.commands import LinkAccept, LinkReject
from app.flow.context import FlowContext
from app.flow.states import FlowKind, RegistrationSession, StaffVerifySession
from app.services import property_service, user_service
from app.services.link_service import LinkRequest, accept_link, get_link_store, reject_link
from utils import constants
from utils.line_utils import create_link_request_message
from utils.validation_utils import clean_phone, is_phone_number

logger = get_logger(__name__)


async def _room_number(room_id: Optional[str]) -> str:
    room = await property_service.get_room(room_id) if room_id else None
    return str((room or {}).get("number") or "-")


async def handle_register_session_start(ctx: FlowContext) -> None:
    if await property_service.is_line_user_linked(ctx.user_id):
        await ctx.reply(constants.REGISTER_ALREADY_LINKED)
        return
    if not await ctx.require_not_busy(allow=(FlowKind.REGISTRATION,)):
        return

    ctx.start(FlowKind.REGISTRATION, RegistrationSession())
    await ctx.reply(constants.REGISTER_PHONE_PROMPT)


async def handle_register_command(ctx: FlowContext, phone: str) -> None:
    """
    REGISTER <phone>.
    """
    if not is_phone_number(phone):
        await ctx.reply(constants.REGISTER_USAGE)
        return
    await register_by_phone(ctx, phone)


async def register_by_phone(ctx: FlowContext, phone: str) -> None:
    """
    Links the chat user to the tenant, or else the room contact, owning
    the phone number. Ends the registration session.
    """
    ctx.clear(FlowKind.REGISTRATION)
    phone = clean_phone(phone)

    tenant = await property_service.find_tenant_by_phone(phone)
    if tenant:
        if tenant.get("line_user_id") and tenant["line_user_id"] != ctx.user_id:
            await ctx.reply(constants.REGISTER_PHONE_TAKEN)
            return
        await property_service.link_tenant(tenant["_id"], ctx.user_id)
        contract = await property_service.find_active_contract_for_tenant(tenant["_id"])
        room = await _room_number(contract.get("room_id") if contract else None)
        await ctx.reply(constants.REGISTER_SUCCESS.format(room=room))
        return

    contact = await property_service.find_contact_by_phone(phone)
    if contact:
        if contact.get("line_user_id") and contact["line_user_id"] != ctx.user_id:
            await ctx.reply(constants.REGISTER_PHONE_TAKEN)
            return
        await property_service.link_contact(contact["_id"], ctx.user_id)
        await ctx.reply(constants.REGISTER_SUCCESS.format(room=await _room_number(contact.get("room_id"))))
        return

    await ctx.reply(constants.REGISTER_PHONE_NOT_FOUND)


async def handle_phone_number(ctx: FlowContext, text: str) -> None:
    """
    A bare phone number. Registers when the registration session is live,
    otherwise files a link request for the tenant's room.
    """
    if ctx.session(FlowKind.REGISTRATION):
        await register_by_phone(ctx, text)
        return

    phone = clean_phone(text)
    tenant = await property_service.find_tenant_by_phone(phone)
    if not tenant:
        await ctx.reply(constants.REGISTER_PHONE_NOT_FOUND)
        return
    if tenant.get("line_user_id") == ctx.user_id:
        await ctx.reply(constants.REGISTER_ALREADY_LINKED)
        return

    contract = await property_service.find_active_contract_for_tenant(tenant["_id"])
    if not contract:
        await ctx.reply(constants.NO_ACTIVE_CONTRACT)
        return

    room_id = contract["room_id"]
    get_link_store().add(room_id, LinkRequest(user_id=ctx.user_id, phone=phone, tenant_id=tenant["_id"]))
    logger.info(f"📝 Link request filed for room {room_id}")

    await ctx.reply(create_link_request_message(room_id, await _room_number(room_id), tenant["_id"]))


async def handle_link_accept(ctx: FlowContext, command: LinkAccept) -> None:
    try:
        result = await accept_link(command.room_id, command.tenant_id, user_id=ctx.user_id)
    except ResourceNotFoundError:
        await ctx.reply(constants.LINK_REQUEST_MISSING)
        return

    if result["status"] == "already_linked":
        await ctx.reply(constants.LINK_ALREADY_LINKED)
        return
    await ctx.reply(constants.LINK_ACCEPTED)


async def handle_link_reject(ctx: FlowContext, command: LinkReject) -> None:
    if reject_link(command.room_id, user_id=ctx.user_id):
        await ctx.reply(constants.LINK_REJECTED)
    else:
        await ctx.reply(constants.LINK_REQUEST_MISSING)


# ============================================================
# STAFF
# ============================================================

async def handle_staff_register(ctx: FlowContext, phone: str) -> None:
    """
    REGISTERSTAFFSISOM <phone>: finds the staff account and waits for its code.
    """
    if not is_phone_number(phone):
        await ctx.reply(constants.STAFF_REGISTER_USAGE)
        return

    account = await user_service.find_user_by_phone(clean_phone(phone))
    if not account or account.get("role") not in user_service.STAFF_ROLES:
        await ctx.reply(constants.STAFF_REGISTER_NOT_FOUND)
        return

    ctx.start(FlowKind.STAFF_VERIFY, StaffVerifySession(account_id=account["_id"], phone=clean_phone(phone)))
    await ctx.reply(constants.STAFF_REGISTER_CODE_PROMPT)


async def handle_verify_code(ctx: FlowContext, code: str) -> None:
    session = ctx.session(FlowKind.STAFF_VERIFY)
    if not session:
        return

    account = await user_service.get_user(session.account_id)
    if not account or not account.get("verify_code") or str(account["verify_code"]) != code.strip():
        await ctx.reply(constants.STAFF_REGISTER_CODE_INVALID)
        return

    await user_service.link_line_account(account["_id"], ctx.user_id)
    ctx.roles.add_staff(ctx.user_id)
    ctx.clear(FlowKind.STAFF_VERIFY)
    await ctx.reply(constants.STAFF_REGISTER_SUCCESS)
