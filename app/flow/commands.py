"""
app/flow/commands.py

Purpose: Postback command decoding

- Parses the ASCII "KEY=value[:value2]" postback data once
- Produces one typed command per key
- Unknown or malformed data decodes to UnknownCommand
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class MoveoutDays:
    days: int


@dataclass(frozen=True)
class LinkAccept:
    room_id: str
    tenant_id: str


@dataclass(frozen=True)
class LinkReject:
    room_id: str


@dataclass(frozen=True)
class PayBuilding:
    building_id: str


@dataclass(frozen=True)
class PayFloor:
    building_id: str
    floor: int


@dataclass(frozen=True)
class PayRoom:
    room_id: str


@dataclass(frozen=True)
class PayBack:
    target: str  # "BUILDINGS" or "FLOORS"
    building_id: Optional[str] = None


@dataclass(frozen=True)
class MoveoutBuilding:
    building_id: str


@dataclass(frozen=True)
class MoveoutFloor:
    building_id: str
    floor: int


@dataclass(frozen=True)
class MoveoutRoom:
    room_id: str


@dataclass(frozen=True)
class MaintenanceDone:
    request_id: str


@dataclass(frozen=True)
class MaintenanceNotDone:
    request_id: str


@dataclass(frozen=True)
class TenantMoveoutDate:
    date: Optional[str]


@dataclass(frozen=True)
class UnknownCommand:
    data: str
    reason: str = "unknown key"


PostbackCommand = Union[
    MoveoutDays, LinkAccept, LinkReject,
    PayBuilding, PayFloor, PayRoom, PayBack,
    MoveoutBuilding, MoveoutFloor, MoveoutRoom,
    MaintenanceDone, MaintenanceNotDone,
    TenantMoveoutDate, UnknownCommand,
]

DEFAULT_MOVEOUT_DAYS = 7


def _split_pair(value: str):
    first, _, second = value.partition(":")
    return first.strip(), second.strip()


def _building_floor(value: str):
    building_id, floor = _split_pair(value)
    if not building_id or not floor.lstrip("-").isdigit():
        return None
    return building_id, int(floor)


def parse_postback(data: Optional[str], params: Optional[Dict[str, Any]] = None) -> PostbackCommand:
    """
    Decodes postback data into a command.

    Args:
        data: Raw postback data, e.g. "PAY_FLOOR=bld1:3"
        params: Postback params (date picker result lives in params["date"])

    Returns:
        A command dataclass; UnknownCommand when the data cannot be decoded

    Example:
        >>> parse_postback("PAY_FLOOR=bld1:3")
        PayFloor(building_id='bld1', floor=3)
    """
    raw = (data or "").strip()
    key, sep, value = raw.partition("=")
    key = key.strip().upper()
    value = value.strip()
    params = params or {}

    if key == "TENANT_MOVEOUT_DATE":
        return TenantMoveoutDate(date=params.get("date") or value or None)

    if key == "MOVEOUT_DAYS":
        if not value:
            return MoveoutDays(days=DEFAULT_MOVEOUT_DAYS)
        if value.isdigit() and int(value) > 0:
            return MoveoutDays(days=int(value))
        return UnknownCommand(raw, "invalid day count")

    if not sep or not value:
        return UnknownCommand(raw, "missing value")

    if key == "LINK_ACCEPT":
        room_id, tenant_id = _split_pair(value)
        if room_id and tenant_id:
            return LinkAccept(room_id=room_id, tenant_id=tenant_id)
        return UnknownCommand(raw, "expected room:tenant")

    if key == "LINK_REJECT":
        return LinkReject(room_id=_split_pair(value)[0])

    if key == "PAY_BUILDING":
        return PayBuilding(building_id=value)

    if key in ("PAY_FLOOR", "MO_FLOOR"):
        pair = _building_floor(value)
        if pair is None:
            return UnknownCommand(raw, "expected building:floor")
        if key == "PAY_FLOOR":
            return PayFloor(building_id=pair[0], floor=pair[1])
        return MoveoutFloor(building_id=pair[0], floor=pair[1])

    if key == "PAY_ROOM":
        return PayRoom(room_id=value)

    if key == "PAY_BACK":
        target, building_id = _split_pair(value)
        target = target.upper()
        if target == "BUILDINGS":
            return PayBack(target=target)
        if target == "FLOORS" and building_id:
            return PayBack(target=target, building_id=building_id)
        return UnknownCommand(raw, "invalid back target")

    if key == "MO_BUILDING":
        return MoveoutBuilding(building_id=value)

    if key == "MO_ROOM":
        return MoveoutRoom(room_id=value)

    if key == "MAINT_DONE":
        return MaintenanceDone(request_id=value)

    if key == "MAINT_NOT_DONE":
        return MaintenanceNotDone(request_id=value)

    return UnknownCommand(raw)
