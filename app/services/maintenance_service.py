"""
app/services/maintenance_service.py

Purpose: Maintenance requests (repair tickets and move-out records)

- Creates requests and flags the room as under maintenance
- Status updates from staff acknowledgment
- Pending list and move-out due lookup
"""

import re
import uuid
from typing import Any, Dict, List, Optional

from app.db.mongo import get_collection
from app.core.logging import get_logger
from app.services import property_service
from utils.constants import (
    MAINTENANCE_PENDING,
    MAINTENANCE_DONE,
    MOVEOUT_RECORD_TITLE,
    ROOM_MAINTENANCE,
)
from utils.time_utils import utc_now

logger = get_logger(__name__)

Doc = Dict[str, Any]


async def create_request(
    room_id: str,
    title: str,
    description: str,
    reported_by: str,
    reporter_line_user_id: Optional[str] = None,
) -> Doc:
    """
    Creates a maintenance request in PENDING state.

    Repair tickets put the room into MAINTENANCE status; move-out
    records (title "แจ้งย้ายออก") leave the room untouched.
    """
    request = {
        "_id": uuid.uuid4().hex,
        "room_id": room_id,
        "title": title,
        "description": description,
        "reported_by": reported_by,
        "reporter_line_user_id": reporter_line_user_id,
        "status": MAINTENANCE_PENDING,
        "created_at": utc_now(),
        "resolved_at": None,
    }
    await get_collection("maintenance_requests").insert_one(request)

    if title != MOVEOUT_RECORD_TITLE:
        await property_service.set_room_status(room_id, ROOM_MAINTENANCE)

    logger.info(f"🛠️ Maintenance request created: {title} room={room_id}", extra={"request_id": request["_id"]})
    return request


async def get_request(request_id: str) -> Optional[Doc]:
    return await get_collection("maintenance_requests").find_one({"_id": request_id})


async def set_status(request_id: str, status: str) -> bool:
    update: Doc = {"status": status}
    if status == MAINTENANCE_DONE:
        update["resolved_at"] = utc_now()
    result = await get_collection("maintenance_requests").update_one(
        {"_id": request_id}, {"$set": update}
    )
    return result.matched_count > 0


async def list_pending(limit: int = 10) -> List[Doc]:
    cursor = get_collection("maintenance_requests").find(
        {"status": MAINTENANCE_PENDING}
    ).sort("created_at", -1).limit(limit)
    return await cursor.to_list(length=limit)


async def find_moveouts_for_date(day: str) -> List[Doc]:
    """
    Move-out records whose description names the given date (YYYY-MM-DD).
    """
    pattern = re.escape(f"วันที่ย้ายออก: {day}")
    return await get_collection("maintenance_requests").find(
        {"title": MOVEOUT_RECORD_TITLE, "description": {"$regex": pattern}}
    ).to_list(length=None)
