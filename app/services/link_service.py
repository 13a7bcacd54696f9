"""
app/services/link_service.py

Purpose: Pending LINE-to-tenant link requests

- One ordered list of requests per room
- A new request from the same user replaces that user's earlier one
- Accept links the tenant to the requesting LINE id; reject drops it
- Not time-limited, kept in memory
"""

import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from app.core.exceptions import ResourceNotFoundError
from app.core.logging import get_logger
from app.services import property_service

logger = get_logger(__name__)


@dataclass
class LinkRequest:
    user_id: str
    phone: str
    tenant_id: str
    timestamp: float = field(default_factory=time.time)


class LinkRequestStore:
    def __init__(self):
        self._requests: Dict[str, List[LinkRequest]] = {}

    def add(self, room_id: str, request: LinkRequest) -> None:
        pending = [r for r in self._requests.get(room_id, []) if r.user_id != request.user_id]
        pending.append(request)
        self._requests[room_id] = pending

    def find(self, room_id: str, user_id: Optional[str] = None) -> Optional[LinkRequest]:
        """
        The given user's request for a room, or the latest one when no user is given.
        """
        pending = self._requests.get(room_id, [])
        if user_id is None:
            return pending[-1] if pending else None
        for request in pending:
            if request.user_id == user_id:
                return request
        return None

    def remove(self, room_id: str, user_id: Optional[str] = None) -> bool:
        pending = self._requests.get(room_id, [])
        if user_id is None:
            removed = bool(pending)
            remaining = []
        else:
            remaining = [r for r in pending if r.user_id != user_id]
            removed = len(remaining) != len(pending)
        if remaining:
            self._requests[room_id] = remaining
        else:
            self._requests.pop(room_id, None)
        return removed

    def list(self) -> Dict[str, List[Dict[str, Any]]]:
        return {room_id: [asdict(r) for r in pending] for room_id, pending in self._requests.items()}

    def reset(self) -> None:
        self._requests.clear()


_store: Optional[LinkRequestStore] = None


def get_link_store() -> LinkRequestStore:
    global _store
    if _store is None:
        _store = LinkRequestStore()
    return _store


async def accept_link(room_id: str, tenant_id: Optional[str] = None, user_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Accepts a pending link request for a room.

    Args:
        room_id: Room of the request
        tenant_id: Tenant to link (defaults to the request's tenant)
        user_id: Requesting LINE id (defaults to the latest request)

    Returns:
        {"status": "accepted" | "already_linked", "user_id", "tenant_id"}

    Raises:
        ResourceNotFoundError: No such request or tenant
    """
    store = get_link_store()
    request = store.find(room_id, user_id)
    if not request:
        raise ResourceNotFoundError("Link request not found", details={"room_id": room_id})

    tenant_id = tenant_id or request.tenant_id
    tenant = await property_service.get_tenant(tenant_id)
    if not tenant:
        raise ResourceNotFoundError("Tenant not found", details={"tenant_id": tenant_id})

    store.remove(room_id, request.user_id)
    if tenant.get("line_user_id") and tenant["line_user_id"] != request.user_id:
        logger.warning(f"⚠️ Tenant {tenant_id} already linked to another LINE account")
        return {"status": "already_linked", "user_id": request.user_id, "tenant_id": tenant_id}

    await property_service.link_tenant(tenant_id, request.user_id)
    return {"status": "accepted", "user_id": request.user_id, "tenant_id": tenant_id}


def reject_link(room_id: str, user_id: Optional[str] = None) -> bool:
    removed = get_link_store().remove(room_id, user_id)
    if removed:
        logger.info(f"🗑️ Link request rejected for room {room_id}")
    return removed
