"""
app/services/user_service.py

Purpose: Staff / admin / owner accounts

- Lookup by phone variants for staff self-registration
- Link a LINE id once the six-digit verify code matches
- Recipients of maintenance notifications
"""

from typing import Any, Dict, List, Optional

from app.db.mongo import get_collection
from app.core.logging import get_logger, LogContext
from utils.constants import PERMISSION_LINE_NOTIFY
from utils.validation_utils import phone_variants

logger = get_logger(__name__)

Doc = Dict[str, Any]

ADMIN_ROLES = ["ADMIN", "OWNER"]
STAFF_ROLES = ["ADMIN", "OWNER", "STAFF"]


async def get_user(user_id: str) -> Optional[Doc]:
    return await get_collection("users").find_one({"_id": user_id})


async def find_user_by_phone(phone: str) -> Optional[Doc]:
    return await get_collection("users").find_one({"phone": {"$in": phone_variants(phone)}})


async def link_line_account(user_id: str, line_user_id: str) -> None:
    """
    Stores the LINE id on a staff account and burns its verify code.
    """
    with LogContext(user_id=line_user_id):
        await get_collection("users").update_one(
            {"_id": user_id},
            {"$set": {"line_user_id": line_user_id, "verify_code": None}}
        )
        logger.info(f"🔗 Staff account {user_id} linked to LINE")


async def list_linked_admins() -> List[Doc]:
    """
    ADMIN / OWNER accounts that already carry a LINE id.
    """
    return await get_collection("users").find(
        {"role": {"$in": ADMIN_ROLES}, "line_user_id": {"$nin": [None, ""]}}
    ).to_list(length=None)


async def list_notification_recipients() -> List[str]:
    """
    LINE ids of staff accounts holding the messaging-notification permission.
    """
    users = await get_collection("users").find(
        {
            "role": {"$in": STAFF_ROLES},
            "permissions": PERMISSION_LINE_NOTIFY,
            "line_user_id": {"$nin": [None, ""]},
        }
    ).to_list(length=None)

    recipients: List[str] = []
    for user in users:
        if user["line_user_id"] not in recipients:
            recipients.append(user["line_user_id"])
    return recipients
