"""
app/flow/states.py

Purpose: Defines all flow kinds, steps and session records

- FlowKind: one entry per multi-step business flow
- FlowStep: every step a session can be in
- Session dataclasses, one per flow kind (always carry a step)
- Metadata for each flow (timeout, expiry copy, blocking)
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple
from dataclasses import dataclass, field

from utils import constants


class FlowKind(str, Enum):
    """
    Business flows a user can be in. At most one live session per
    (user, kind) exists at any time.
    """

    PAYMENT = "PAYMENT"                    # slip awaited for a target invoice
    STAFF_PAYMENT = "STAFF_PAYMENT"        # staff building/floor/room drill-down
    STAFF_MOVEOUT = "STAFF_MOVEOUT"        # staff drill-down + meter photos
    TENANT_MOVEOUT = "TENANT_MOVEOUT"      # tenant plan + reason
    REGISTRATION = "REGISTRATION"          # REGISTERSISOM awaiting a phone number
    MAINTENANCE = "MAINTENANCE"            # tenant repair ticket
    STAFF_VERIFY = "STAFF_VERIFY"          # REGISTERSTAFFSISOM awaiting a code
    MAINTENANCE_ACK = "MAINTENANCE_ACK"    # notified staff may mark a ticket done


class FlowStep(str, Enum):
    """
    Every step a session can be in.
    """

    # Payment context
    AWAIT_SLIP = "AWAIT_SLIP"

    # Drill-down (staff payment and staff move-out)
    SELECT_FLOOR = "SELECT_FLOOR"
    SELECT_ROOM = "SELECT_ROOM"

    # Staff move-out meter photos
    WATER = "WATER"
    ELECTRIC = "ELECTRIC"

    # Tenant move-out
    WAIT_PLAN = "WAIT_PLAN"
    WAIT_REASON = "WAIT_REASON"

    # Registration
    WAIT_PHONE = "WAIT_PHONE"
    WAIT_CODE = "WAIT_CODE"

    # Maintenance
    WAIT_DETAIL = "WAIT_DETAIL"
    ASK_IMAGE = "ASK_IMAGE"
    WAIT_IMAGES = "WAIT_IMAGES"
    AWAIT_ACK = "AWAIT_ACK"


@dataclass
class FlowMetadata:
    """
    Metadata associated with each flow kind.
    """
    kind: FlowKind
    steps: FrozenSet[FlowStep]
    expiry_message: Optional[str] = None  # None = expire silently
    ack_window: bool = False  # uses the staff acknowledgment timeout
    blocking: bool = True  # counts toward the busy check
    description: str = ""


FLOW_METADATA: Dict[FlowKind, FlowMetadata] = {
    FlowKind.PAYMENT: FlowMetadata(
        kind=FlowKind.PAYMENT,
        steps=frozenset({FlowStep.AWAIT_SLIP}),
        expiry_message=constants.EXPIRED_PAYMENT,
        description="Target invoice for the next uploaded slip"
    ),
    FlowKind.STAFF_PAYMENT: FlowMetadata(
        kind=FlowKind.STAFF_PAYMENT,
        steps=frozenset({FlowStep.SELECT_FLOOR, FlowStep.SELECT_ROOM, FlowStep.AWAIT_SLIP}),
        expiry_message=constants.EXPIRED_STAFF_PAYMENT,
        description="Staff picks building, floor and room to take a payment"
    ),
    FlowKind.STAFF_MOVEOUT: FlowMetadata(
        kind=FlowKind.STAFF_MOVEOUT,
        steps=frozenset({
            FlowStep.SELECT_FLOOR, FlowStep.SELECT_ROOM,
            FlowStep.WATER, FlowStep.ELECTRIC,
        }),
        expiry_message=constants.EXPIRED_STAFF_MOVEOUT,
        description="Staff records meter photos of a vacating room"
    ),
    FlowKind.TENANT_MOVEOUT: FlowMetadata(
        kind=FlowKind.TENANT_MOVEOUT,
        steps=frozenset({FlowStep.WAIT_PLAN, FlowStep.WAIT_REASON}),
        expiry_message=constants.EXPIRED_TENANT_MOVEOUT,
        description="Tenant announces a move-out date and reason"
    ),
    FlowKind.REGISTRATION: FlowMetadata(
        kind=FlowKind.REGISTRATION,
        steps=frozenset({FlowStep.WAIT_PHONE}),
        expiry_message=constants.EXPIRED_REGISTRATION,
        description="Waiting for the phone number registered with the dorm"
    ),
    FlowKind.MAINTENANCE: FlowMetadata(
        kind=FlowKind.MAINTENANCE,
        steps=frozenset({FlowStep.WAIT_DETAIL, FlowStep.ASK_IMAGE, FlowStep.WAIT_IMAGES}),
        expiry_message=constants.EXPIRED_MAINTENANCE,
        description="Tenant repair ticket intake"
    ),
    FlowKind.STAFF_VERIFY: FlowMetadata(
        kind=FlowKind.STAFF_VERIFY,
        steps=frozenset({FlowStep.WAIT_CODE}),
        blocking=False,
        description="Staff account linking, waiting for the six-digit code"
    ),
    FlowKind.MAINTENANCE_ACK: FlowMetadata(
        kind=FlowKind.MAINTENANCE_ACK,
        steps=frozenset({FlowStep.AWAIT_ACK}),
        expiry_message=constants.EXPIRED_MAINTENANCE_ACK,
        ack_window=True,
        blocking=False,
        description="Notified staff may mark a ticket done or not done"
    ),
}


# The payment context and the staff drill-down belong to the same flow family
PAYMENT_FAMILY: Tuple[FlowKind, ...] = (FlowKind.PAYMENT, FlowKind.STAFF_PAYMENT)


# ============================================================
# SESSION RECORDS
# ============================================================

@dataclass(frozen=True)
class PaymentSession:
    invoice_id: str
    step: FlowStep = FlowStep.AWAIT_SLIP


@dataclass(frozen=True)
class StaffPaymentSession:
    step: FlowStep
    building_id: str
    floor: Optional[int] = None
    room_id: Optional[str] = None
    contract_id: Optional[str] = None


@dataclass(frozen=True)
class StaffMoveoutSession:
    step: FlowStep
    building_id: str
    floor: Optional[int] = None
    room_id: Optional[str] = None
    room_number: Optional[str] = None
    contract_id: Optional[str] = None
    tenant_name: Optional[str] = None
    tenant_phone: Optional[str] = None
    water_image_url: Optional[str] = None


@dataclass(frozen=True)
class TenantMoveoutSession:
    step: FlowStep
    contract_id: str
    room_id: str
    room_number: str = "-"
    tenant_name: Optional[str] = None
    tenant_phone: Optional[str] = None
    plan: Optional[str] = None
    moveout_date: Optional[str] = None


@dataclass(frozen=True)
class RegistrationSession:
    step: FlowStep = FlowStep.WAIT_PHONE


@dataclass(frozen=True)
class StaffVerifySession:
    account_id: str
    phone: str
    step: FlowStep = FlowStep.WAIT_CODE


@dataclass(frozen=True)
class MaintenanceSession:
    step: FlowStep
    contract_id: str
    room_id: str
    room_number: str = "-"
    tenant_name: Optional[str] = None
    tenant_phone: Optional[str] = None
    detail: Optional[str] = None
    image_urls: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MaintenanceAckSession:
    request_id: str
    step: FlowStep = FlowStep.AWAIT_ACK


def is_valid_step(kind: FlowKind, step: Optional[FlowStep]) -> bool:
    """
    Checks that a step belongs to the given flow kind.
    """
    if step is None:
        return False
    return step in FLOW_METADATA[kind].steps


def get_flow_metadata(kind: FlowKind) -> FlowMetadata:
    return FLOW_METADATA[kind]
