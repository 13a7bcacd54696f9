"""
app/api/line.py

Purpose: Admin endpoints around the LINE assistant

- Push usage and dispatch metrics
- Ad-hoc push
- Pending link requests (list, accept, reject)
- Staff membership lookup and role mapping
- Move-out due notifications
"""

from typing import Optional

from fastapi import APIRouter

from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger
from app.flow.handlers.tenant_moveout import notify_moveout_due
from app.schemas.line import (
    LinkAcceptRequest,
    LinkRejectRequest,
    MoveoutDueRequest,
    PushRequest,
    RoleMappingRequest,
)
from app.services.line_service import LineMessagingClient, get_dispatcher, get_push_usage
from app.services.link_service import accept_link, get_link_store, reject_link
from app.services.role_service import get_role_resolver
from utils import constants
from utils.time_utils import usage_month_key

logger = get_logger(__name__)
router = APIRouter()


@router.get("/usage")
async def line_usage(month: Optional[str] = None):
    """
    Push count recorded for a month (YYYY-MM, default current) plus
    LINE's own quota figure and in-process dispatch metrics.
    """
    dispatcher = get_dispatcher()
    quota = None
    if isinstance(dispatcher.client, LineMessagingClient) and dispatcher.client.is_configured():
        quota = await dispatcher.client.get_quota_consumption()

    month = month or usage_month_key()
    return {
        "month": month,
        "push_count": await get_push_usage(month),
        "quota_consumption": quota,
        "dispatch": dict(dispatcher.metrics),
    }


@router.post("/push")
async def line_push(body: PushRequest):
    sent = await get_dispatcher().push_now(body.to, [body.text])
    return {"sent": sent}


@router.get("/link-requests")
async def list_link_requests():
    return {"requests": get_link_store().list()}


@router.post("/link-requests/{room_id}/accept")
async def accept_link_request(room_id: str, body: Optional[LinkAcceptRequest] = None):
    body = body or LinkAcceptRequest()
    result = await accept_link(room_id, body.tenant_id, body.user_id)

    if result["status"] == "accepted":
        get_dispatcher().push(result["user_id"], [constants.LINK_ACCEPTED])
    return result


@router.post("/link-requests/{room_id}/reject")
async def reject_link_request(room_id: str, body: Optional[LinkRejectRequest] = None):
    body = body or LinkRejectRequest()
    if not reject_link(room_id, body.user_id):
        raise ResourceNotFoundError("Link request not found", details={"room_id": room_id})
    return {"status": "rejected", "room_id": room_id}


@router.get("/is-staff/{user_id}")
async def is_staff(user_id: str):
    roles = get_role_resolver()
    return {"user_id": user_id, "isStaff": roles.is_staff(user_id), "isAdmin": roles.is_admin(user_id)}


@router.post("/roles/map")
async def map_role(body: RoleMappingRequest):
    return get_role_resolver().apply_role_mapping(body.user_id, body.role)


@router.post("/notify-moveout-due")
async def moveout_due(body: Optional[MoveoutDueRequest] = None):
    body = body or MoveoutDueRequest()
    return await notify_moveout_due(body.day)
