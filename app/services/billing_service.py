"""
app/services/billing_service.py

Purpose: Invoices and payments

- Unpaid invoice lookups (by contract, period, amount, globally)
- Drill-down aggregates (floors / rooms with unpaid invoices)
- Payment persistence and invoice settlement
"""

import json
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from app.db.mongo import get_collection
from app.core.logging import get_logger, LogContext
from app.services import property_service
from utils.constants import (
    INVOICE_UNPAID_STATUSES,
    INVOICE_PAID,
    PAYMENT_VERIFIED,
    PAYMENT_PENDING,
)
from utils.time_utils import utc_now

logger = get_logger(__name__)

Doc = Dict[str, Any]

AMOUNT_TOLERANCE = 1.0


def is_unpaid(invoice: Optional[Doc]) -> bool:
    return bool(invoice) and invoice.get("status") in INVOICE_UNPAID_STATUSES


async def _first(query: Doc) -> Optional[Doc]:
    cursor = get_collection("invoices").find(query).sort("created_at", -1).limit(1)
    found = await cursor.to_list(length=1)
    return found[0] if found else None


async def get_invoice(invoice_id: str) -> Optional[Doc]:
    return await get_collection("invoices").find_one({"_id": invoice_id})


async def find_invoice_for_period(contract_ids: Iterable[str], month: int, year: int) -> Optional[Doc]:
    return await _first({"contract_id": {"$in": list(contract_ids)}, "month": month, "year": year})


async def find_latest_unpaid(contract_ids: Optional[Iterable[str]] = None) -> Optional[Doc]:
    """
    Latest unpaid invoice, optionally scoped to contracts.
    """
    query: Doc = {"status": {"$in": INVOICE_UNPAID_STATUSES}}
    if contract_ids is not None:
        query["contract_id"] = {"$in": list(contract_ids)}
    return await _first(query)


async def find_latest_invoice(contract_id: str) -> Optional[Doc]:
    return await _first({"contract_id": contract_id})


async def find_unpaid_by_amount(amount: float, contract_id: Optional[str] = None) -> Optional[Doc]:
    """
    Latest unpaid invoice whose total is within ±1 of the slip amount.
    """
    query: Doc = {
        "status": {"$in": INVOICE_UNPAID_STATUSES},
        "total_amount": {"$gte": amount - AMOUNT_TOLERANCE, "$lte": amount + AMOUNT_TOLERANCE},
    }
    if contract_id:
        query["contract_id"] = contract_id
    return await _first(query)


async def list_unpaid(contract_ids: Optional[Iterable[str]] = None, limit: int = 10) -> List[Doc]:
    query: Doc = {"status": {"$in": INVOICE_UNPAID_STATUSES}}
    if contract_ids is not None:
        query["contract_id"] = {"$in": list(contract_ids)}
    cursor = get_collection("invoices").find(query).sort("created_at", -1).limit(limit)
    return await cursor.to_list(length=limit)


async def _unpaid_room_ids(room_ids: List[str]) -> List[str]:
    if not room_ids:
        return []
    contracts = await get_collection("contracts").find(
        {"room_id": {"$in": room_ids}}
    ).to_list(length=None)
    by_contract = {c["_id"]: c["room_id"] for c in contracts}
    if not by_contract:
        return []
    unpaid_contracts = await get_collection("invoices").distinct(
        "contract_id",
        {"contract_id": {"$in": list(by_contract)}, "status": {"$in": INVOICE_UNPAID_STATUSES}},
    )
    return list({by_contract[cid] for cid in unpaid_contracts})


async def buildings_with_unpaid() -> List[Doc]:
    rooms = await get_collection("rooms").find({}).to_list(length=None)
    unpaid = set(await _unpaid_room_ids([r["_id"] for r in rooms]))
    building_ids = {r["building_id"] for r in rooms if r["_id"] in unpaid}
    return await property_service.list_buildings(building_ids)


async def floors_with_unpaid(building_id: str) -> List[int]:
    rooms = await property_service.list_rooms(building_id)
    unpaid = set(await _unpaid_room_ids([r["_id"] for r in rooms]))
    return sorted({r["floor"] for r in rooms if r["_id"] in unpaid})


async def rooms_with_unpaid(building_id: str, floor: int) -> List[Doc]:
    rooms = await property_service.list_rooms(building_id, floor)
    unpaid = set(await _unpaid_room_ids([r["_id"] for r in rooms]))
    return [r for r in rooms if r["_id"] in unpaid]


async def list_payments(invoice_id: str) -> List[Doc]:
    return await get_collection("payments").find({"invoice_id": invoice_id}).to_list(length=None)


async def record_payment(
    invoice: Doc,
    amount: float,
    slip_url: str,
    slip_meta: Dict[str, Any],
    verified: bool,
    paid_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Persists a payment and settles the invoice when fully paid.

    remaining = invoice total - sum of every payment for the invoice
    (including this one). The invoice becomes PAID only for a verified
    payment that leaves at most 1 unit outstanding.

    Returns:
        {"payment": doc, "remaining": float, "paid": bool}
    """
    with LogContext(invoice_id=invoice["_id"]):
        payment = {
            "_id": uuid.uuid4().hex,
            "invoice_id": invoice["_id"],
            "amount": float(amount),
            "slip_image_url": slip_url,
            "slip_meta": json.dumps(slip_meta, ensure_ascii=False, default=str),
            "status": PAYMENT_VERIFIED if verified else PAYMENT_PENDING,
            "paid_at": (paid_at or utc_now()) if verified else None,
            "verified_by": "AUTO" if verified else None,
            "created_at": utc_now(),
        }
        await get_collection("payments").insert_one(payment)

        payments = await list_payments(invoice["_id"])
        total_paid = sum(float(p.get("amount") or 0) for p in payments)
        remaining = float(invoice.get("total_amount") or 0) - total_paid

        paid = False
        if verified and remaining <= AMOUNT_TOLERANCE:
            await get_collection("invoices").update_one(
                {"_id": invoice["_id"]},
                {"$set": {"status": INVOICE_PAID, "paid_at": utc_now()}}
            )
            paid = True

        logger.info(
            f"💰 Payment recorded: {payment['status']} amount={amount} remaining={remaining}"
        )
        return {"payment": payment, "remaining": remaining, "paid": paid}
