"""
app/services/property_service.py

Purpose: Buildings, rooms, tenants, room contacts and contracts

- Lookups by id, LINE user id and phone variants
- Contract resolution for a chat user (direct tenant link, then room contact)
- Ordering helpers for drill-down cards
"""

import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.db.mongo import get_collection
from app.core.logging import get_logger
from utils.constants import LAST_BUILDING_NAME
from utils.validation_utils import phone_variants

logger = get_logger(__name__)

Doc = Dict[str, Any]


# ============================================================
# BUILDINGS & ROOMS
# ============================================================

async def get_building(building_id: str) -> Optional[Doc]:
    return await get_collection("buildings").find_one({"_id": building_id})


async def list_buildings(building_ids: Optional[Iterable[str]] = None) -> List[Doc]:
    query: Doc = {}
    if building_ids is not None:
        query["_id"] = {"$in": list(building_ids)}
    buildings = await get_collection("buildings").find(query).to_list(length=None)
    return sort_buildings(buildings)


async def find_building(token: str) -> Optional[Doc]:
    """
    Finds a building by code (exact, case-insensitive) or by name fragment.
    """
    token = (token or "").strip()
    if not token:
        return None

    buildings = await get_collection("buildings").find({}).to_list(length=None)
    lowered = token.lower()
    for building in buildings:
        if str(building.get("code") or "").lower() == lowered:
            return building
    for building in sort_buildings(buildings):
        if lowered in str(building.get("name") or "").lower():
            return building
    return None


async def get_room(room_id: str) -> Optional[Doc]:
    return await get_collection("rooms").find_one({"_id": room_id})


async def list_rooms(building_id: str, floor: Optional[int] = None) -> List[Doc]:
    query: Doc = {"building_id": building_id}
    if floor is not None:
        query["floor"] = floor
    rooms = await get_collection("rooms").find(query).to_list(length=None)
    return sorted(rooms, key=lambda r: room_sort_key(r.get("number")))


async def find_room(building_id: str, floor: int, number: str) -> Optional[Doc]:
    return await get_collection("rooms").find_one(
        {"building_id": building_id, "floor": floor, "number": str(number).strip()}
    )


async def set_room_status(room_id: str, status: str) -> None:
    await get_collection("rooms").update_one({"_id": room_id}, {"$set": {"status": status}})


def sort_buildings(buildings: List[Doc]) -> List[Doc]:
    """
    Sorts buildings by name with the annex building listed last.
    """
    return sorted(
        buildings,
        key=lambda b: (b.get("name") == LAST_BUILDING_NAME, str(b.get("name") or ""))
    )


def room_sort_key(number: Any) -> Tuple[int, str]:
    """
    Numeric-aware sort key: "102" < "1010" < "A12".
    """
    text = str(number or "")
    digits = re.match(r"^(\d+)", text)
    if digits:
        return int(digits.group(1)), text
    return 10 ** 9, text


# ============================================================
# TENANTS & ROOM CONTACTS
# ============================================================

async def get_tenant(tenant_id: str) -> Optional[Doc]:
    return await get_collection("tenants").find_one({"_id": tenant_id})


async def find_tenant_by_line_user(line_user_id: str) -> Optional[Doc]:
    return await get_collection("tenants").find_one({"line_user_id": line_user_id})


async def find_tenant_by_phone(phone: str) -> Optional[Doc]:
    return await get_collection("tenants").find_one({"phone": {"$in": phone_variants(phone)}})


async def link_tenant(tenant_id: str, line_user_id: str) -> None:
    await get_collection("tenants").update_one(
        {"_id": tenant_id}, {"$set": {"line_user_id": line_user_id}}
    )
    logger.info(f"🔗 Tenant {tenant_id} linked to LINE", extra={"user_id": line_user_id})


async def find_contacts_by_line_user(line_user_id: str) -> List[Doc]:
    return await get_collection("room_contacts").find({"line_user_id": line_user_id}).to_list(length=None)


async def find_contact_by_phone(phone: str) -> Optional[Doc]:
    return await get_collection("room_contacts").find_one({"phone": {"$in": phone_variants(phone)}})


async def link_contact(contact_id: str, line_user_id: str) -> None:
    await get_collection("room_contacts").update_one(
        {"_id": contact_id}, {"$set": {"line_user_id": line_user_id}}
    )
    logger.info(f"🔗 Room contact {contact_id} linked to LINE", extra={"user_id": line_user_id})


async def is_line_user_linked(line_user_id: str) -> bool:
    if await find_tenant_by_line_user(line_user_id):
        return True
    return bool(await find_contacts_by_line_user(line_user_id))


# ============================================================
# CONTRACTS
# ============================================================

async def get_contract(contract_id: str) -> Optional[Doc]:
    return await get_collection("contracts").find_one({"_id": contract_id})


async def find_active_contract_for_tenant(tenant_id: str) -> Optional[Doc]:
    cursor = get_collection("contracts").find(
        {"tenant_id": tenant_id, "is_active": True}
    ).sort("start_date", -1).limit(1)
    found = await cursor.to_list(length=1)
    return found[0] if found else None


async def find_active_contract_for_rooms(room_ids: Iterable[str]) -> Optional[Doc]:
    """
    Latest active contract (by start date) among the given rooms.
    """
    room_ids = list(room_ids)
    if not room_ids:
        return None
    cursor = get_collection("contracts").find(
        {"room_id": {"$in": room_ids}, "is_active": True}
    ).sort("start_date", -1).limit(1)
    found = await cursor.to_list(length=1)
    return found[0] if found else None


async def list_active_contracts(room_ids: Optional[Iterable[str]] = None) -> List[Doc]:
    query: Doc = {"is_active": True}
    if room_ids is not None:
        query["room_id"] = {"$in": list(room_ids)}
    return await get_collection("contracts").find(query).to_list(length=None)


async def list_contracts_for_user(line_user_id: str) -> List[Doc]:
    """
    Every contract a chat user may pay for: the tenant's own contracts
    plus contracts of rooms where the user is a room contact.
    Deduplicated, order preserved.
    """
    contracts: List[Doc] = []
    tenant = await find_tenant_by_line_user(line_user_id)
    if tenant:
        contracts += await get_collection("contracts").find(
            {"tenant_id": tenant["_id"]}
        ).sort("start_date", -1).to_list(length=None)

    contacts = await find_contacts_by_line_user(line_user_id)
    room_ids = list({c["room_id"] for c in contacts})
    if room_ids:
        contracts += await get_collection("contracts").find(
            {"room_id": {"$in": room_ids}}
        ).sort("start_date", -1).to_list(length=None)

    unique: List[Doc] = []
    seen = set()
    for contract in contracts:
        if contract["_id"] not in seen:
            seen.add(contract["_id"])
            unique.append(contract)
    return unique


async def resolve_active_contract(line_user_id: str) -> Tuple[Optional[Doc], Optional[Doc]]:
    """
    Resolves the active contract a chat user acts for.

    Returns:
        (contract, tenant) where tenant is the direct tenant link if any.
        contract is None when nothing matches.
    """
    tenant = await find_tenant_by_line_user(line_user_id)
    if tenant:
        contract = await find_active_contract_for_tenant(tenant["_id"])
        if contract:
            return contract, tenant

    contacts = await find_contacts_by_line_user(line_user_id)
    contract = await find_active_contract_for_rooms(c["room_id"] for c in contacts)
    return contract, tenant


async def describe_contract(contract: Doc) -> Dict[str, Any]:
    """
    Room number and tenant identity for cards and record descriptions.
    """
    room = await get_room(contract.get("room_id")) if contract.get("room_id") else None
    tenant = await get_tenant(contract.get("tenant_id")) if contract.get("tenant_id") else None
    building = await get_building(room.get("building_id")) if room and room.get("building_id") else None
    return {
        "room_id": contract.get("room_id"),
        "room_number": (room or {}).get("number") or "-",
        "floor": (room or {}).get("floor"),
        "building_name": (building or {}).get("name") or "",
        "tenant_id": contract.get("tenant_id"),
        "tenant_name": (tenant or {}).get("name"),
        "tenant_phone": (tenant or {}).get("phone"),
    }


async def set_deposit_refund_days(contract_id: str, days: int) -> None:
    await get_collection("contracts").update_one(
        {"_id": contract_id}, {"$set": {"deposit_refund_days": days}}
    )


# ============================================================
# OCCUPIED ROOMS (move-out drill-down)
# ============================================================

async def _occupied_room_ids() -> List[str]:
    contracts = await list_active_contracts()
    return list({c["room_id"] for c in contracts if c.get("room_id")})


async def buildings_with_active_contracts() -> List[Doc]:
    room_ids = await _occupied_room_ids()
    if not room_ids:
        return []
    rooms = await get_collection("rooms").find({"_id": {"$in": room_ids}}).to_list(length=None)
    return await list_buildings({r["building_id"] for r in rooms})


async def floors_with_active_contracts(building_id: str) -> List[int]:
    occupied = set(await _occupied_room_ids())
    rooms = await list_rooms(building_id)
    return sorted({r["floor"] for r in rooms if r["_id"] in occupied})


async def rooms_with_active_contracts(building_id: str, floor: int) -> List[Doc]:
    occupied = set(await _occupied_room_ids())
    return [r for r in await list_rooms(building_id, floor) if r["_id"] in occupied]
