"""
app/flow/handlers/payment.py

Handles: Rent payment and slip verification

- "ชำระค่าห้อง [เดือน] [ปี]" arms the payment context
- Slip images: resolve the target invoice, store, verify, record payment
- Unpaid invoice lists for tenants and staff
- Dormitory bank account and contact info
"""

from typing import Any, Dict, List, Optional, Tuple

from app.core.config import settings
from app.core.logging import get_logger, LogContext
from app.flow.context import FlowContext
from app.flow.states import FlowKind, PaymentSession, PAYMENT_FAMILY
from app.services import billing_service, property_service
from app.services.media_service import get_media_service, SavedMedia
from app.services.slip_service import get_slip_verifier, SlipVerdict
from utils import constants
from utils.line_utils import (
    create_pay_info_card,
    create_slip_result_card,
    create_unpaid_list_text,
    format_amount,
)
from utils.time_utils import format_bangkok, parse_transacted_at, period_label
from utils.validation_utils import parse_pay_rent_text

logger = get_logger(__name__)

Doc = Dict[str, Any]


def _bank_info() -> Dict[str, str]:
    return {
        "bank_name": settings.DORM_BANK_NAME,
        "account_no": settings.DORM_BANK_ACCOUNT_NO,
        "account_name": settings.DORM_BANK_ACCOUNT_NAME,
    }


async def _room_number_for_invoice(invoice: Doc) -> str:
    contract = await property_service.get_contract(invoice.get("contract_id"))
    if not contract:
        return "-"
    info = await property_service.describe_contract(contract)
    return info["room_number"]


async def _unpaid_rows(invoices: List[Doc]) -> List[Tuple[str, Doc]]:
    return [(await _room_number_for_invoice(inv), inv) for inv in invoices]


async def send_pay_info(ctx: FlowContext, invoice: Doc) -> None:
    """
    Replies the pay-info card for an invoice.
    """
    room_number = await _room_number_for_invoice(invoice)
    await ctx.reply(create_pay_info_card(invoice, room_number, _bank_info()))


# ============================================================
# ENTRY
# ============================================================

async def handle_pay_rent(ctx: FlowContext, text: str) -> None:
    """
    Handles "ชำระค่าห้อง [เดือน] [ปี]".

    Resolves the user's contracts (direct tenant link or room contact),
    picks the invoice for the requested period or the latest unpaid one,
    arms the payment context and sends the pay-info card.
    """
    if not await ctx.require_not_busy(allow=PAYMENT_FAMILY):
        return

    contracts = await property_service.list_contracts_for_user(ctx.user_id)
    if not contracts:
        await ctx.reply(constants.PAY_NO_TENANT)
        return

    contract_ids = [c["_id"] for c in contracts]
    period = parse_pay_rent_text(text)
    if period:
        month, year = period
        invoice = await billing_service.find_invoice_for_period(contract_ids, month, year)
        if not invoice:
            await ctx.reply(constants.PAY_NO_INVOICE_FOR_PERIOD.format(period=period_label(month, year)))
            return
    else:
        invoice = await billing_service.find_latest_unpaid(contract_ids)
        if not invoice:
            await ctx.reply(constants.PAY_NO_UNPAID_INVOICE)
            return

    ctx.start(FlowKind.PAYMENT, PaymentSession(invoice_id=invoice["_id"]))
    logger.info(f"💳 Payment context armed for invoice {invoice['_id']}")

    await send_pay_info(ctx, invoice)
    ctx.push(constants.PAY_SEND_SLIP_PROMPT)


async def handle_send_slip(ctx: FlowContext) -> None:
    """
    Handles "ส่งสลิป": repeats the instructions for the context invoice.
    """
    session = ctx.session(FlowKind.PAYMENT)
    if not session:
        await ctx.reply(constants.PAY_NO_CONTEXT)
        return

    invoice = await billing_service.get_invoice(session.invoice_id)
    if not invoice:
        ctx.clear(FlowKind.PAYMENT)
        await ctx.reply(constants.PAY_INVOICE_NOT_FOUND)
        return

    ctx.sessions.extend(ctx.user_id, FlowKind.PAYMENT)
    await send_pay_info(ctx, invoice)


# ============================================================
# SLIP
# ============================================================

async def _context_invoice(ctx: FlowContext, staff: bool) -> Optional[Doc]:
    session = ctx.session(FlowKind.PAYMENT)
    if not session:
        return None

    invoice = await billing_service.get_invoice(session.invoice_id)
    if not invoice or staff:
        return invoice

    contracts = await property_service.list_contracts_for_user(ctx.user_id)
    if not billing_service.is_unpaid(invoice) or invoice.get("contract_id") not in {c["_id"] for c in contracts}:
        logger.info("Discarding payment context that does not belong to this tenant")
        return None
    return invoice


async def _scope_contract_id(ctx: FlowContext, staff: bool) -> Optional[str]:
    if staff:
        drill = ctx.session(FlowKind.STAFF_PAYMENT)
        return drill.contract_id if drill else None
    contract, _ = await property_service.resolve_active_contract(ctx.user_id)
    return contract["_id"] if contract else None


async def _scoped_invoice(contract_id: Optional[str], staff: bool) -> Optional[Doc]:
    if not contract_id:
        return None
    invoice = await billing_service.find_latest_unpaid([contract_id])
    if invoice or not staff:
        return invoice
    return await billing_service.find_latest_invoice(contract_id)


async def _invoice_by_amount(media: SavedMedia, contract_id: Optional[str]) -> Optional[Doc]:
    verifier = get_slip_verifier()
    verdict = await verifier.verify_by_url(media.url)
    if verdict.amount is None:
        verdict = await verifier.verify_by_data(media.content)
    if verdict.amount is None:
        return None
    return await billing_service.find_unpaid_by_amount(verdict.amount, contract_id)


async def _may_send_slip(ctx: FlowContext) -> bool:
    tenant = await property_service.find_tenant_by_line_user(ctx.user_id)
    if tenant:
        if not await property_service.find_active_contract_for_tenant(tenant["_id"]):
            await ctx.reply(constants.NO_ACTIVE_CONTRACT)
            return False
        return True

    if ctx.session(FlowKind.PAYMENT) or await property_service.find_contacts_by_line_user(ctx.user_id):
        return True

    await ctx.reply(constants.PAY_NO_TENANT)
    return False


def _rearm_payment_sessions(ctx: FlowContext) -> None:
    for kind in PAYMENT_FAMILY:
        ctx.sessions.extend(ctx.user_id, kind)


def _result_card(verdict: SlipVerdict, room_number: str, invoice: Doc, amount: float) -> Dict[str, Any]:
    if verdict.ok:
        kind = "SUCCESS"
    elif verdict.duplicate:
        kind = "DUPLICATE"
    else:
        kind = "INVALID"

    dest = " ".join(p for p in (verdict.dest_bank, verdict.dest_account) if p) or "—"
    return create_slip_result_card(kind, {
        "room": room_number,
        "period": period_label(invoice.get("month"), invoice.get("year")),
        "amount": format_amount(amount),
        "dest": dest,
        "when": format_bangkok(verdict.transacted_at),
        "reason": verdict.message,
    })


async def handle_slip_image(ctx: FlowContext, message_id: str) -> None:
    """
    Handles an image treated as a payment slip.

    Invoice precedence:
    1. Payment context invoice (tenants: only their own unpaid invoice)
    2. Latest unpaid invoice of the tenant contract / staff-selected contract
       (staff fall back to that contract's latest invoice)
    3. Staff only: unpaid invoice matching the slip amount (±1), scoped to
       the selected contract
    4. Staff only: latest unpaid invoice of any contract

    Unknown users and linked tenants without an active contract are
    turned away before anything is stored or verified.
    """
    staff = ctx.is_staff
    media: Optional[SavedMedia] = None

    if not staff and not await _may_send_slip(ctx):
        return

    invoice = await _context_invoice(ctx, staff)
    scope_contract_id = await _scope_contract_id(ctx, staff)
    if not invoice:
        invoice = await _scoped_invoice(scope_contract_id, staff)

    if not invoice and staff:
        media = await get_media_service().ingest(message_id)
        if media is None:
            _rearm_payment_sessions(ctx)
            await ctx.reply(constants.PAY_SLIP_SAVE_FAILED)
            return
        invoice = await _invoice_by_amount(media, scope_contract_id)

    if not invoice and staff:
        invoice = await billing_service.find_latest_unpaid()

    if not invoice:
        await ctx.reply(constants.PAY_INVOICE_NOT_FOUND)
        return

    with LogContext(invoice_id=invoice["_id"], flow=FlowKind.PAYMENT.value):
        if media is None:
            media = await get_media_service().ingest(message_id)
            if media is None:
                _rearm_payment_sessions(ctx)
                await ctx.reply(constants.PAY_SLIP_SAVE_FAILED)
                return

        room_number = await _room_number_for_invoice(invoice)
        await ctx.reply(constants.PAY_SLIP_RECEIVED.format(room=room_number))

        total = float(invoice.get("total_amount") or 0)
        verifier = get_slip_verifier()
        verdict = await verifier.verify_by_url(media.url, total)
        if not verdict.ok:
            verdict = await verifier.verify_by_data(media.content, total)

        amount = verdict.amount if verdict.amount is not None else total
        result = await billing_service.record_payment(
            invoice,
            amount,
            media.url,
            verdict.to_meta(),
            verified=verdict.ok,
            paid_at=parse_transacted_at(verdict.transacted_at),
        )
        ctx.clear(*PAYMENT_FAMILY)

        delay = settings.SLIP_RESULT_DELAY_SECONDS
        if verdict.ok and result["remaining"] > billing_service.AMOUNT_TOLERANCE:
            ctx.push(
                constants.PAY_PARTIAL.format(
                    amount=format_amount(amount),
                    remaining=format_amount(result["remaining"]),
                ),
                delay=delay,
            )
            return

        ctx.push(_result_card(verdict, room_number, invoice, amount), delay=delay)


# ============================================================
# LISTS & INFO
# ============================================================

async def handle_tenant_unpaid(ctx: FlowContext) -> None:
    contracts = await property_service.list_contracts_for_user(ctx.user_id)
    if not contracts:
        await ctx.reply(constants.PAY_NO_TENANT)
        return

    invoices = await billing_service.list_unpaid([c["_id"] for c in contracts], constants.MAX_LIST_ITEMS)
    await ctx.reply(create_unpaid_list_text(await _unpaid_rows(invoices)))


async def handle_staff_unpaid(ctx: FlowContext) -> None:
    if not await ctx.require_staff():
        return

    invoices = await billing_service.list_unpaid(limit=constants.MAX_LIST_ITEMS)
    await ctx.reply(create_unpaid_list_text(await _unpaid_rows(invoices), constants.STAFF_UNPAID_HEADER))


async def handle_bank_account(ctx: FlowContext) -> None:
    bank = _bank_info()
    if not bank["account_no"]:
        await ctx.reply(constants.BANK_INFO_MISSING)
        return
    await ctx.reply(
        f"ธนาคาร: {bank['bank_name'] or '-'}\n"
        f"เลขบัญชี: {bank['account_no']}\n"
        f"ชื่อบัญชี: {bank['account_name'] or '-'}"
    )


async def handle_contact(ctx: FlowContext) -> None:
    lines = []
    if settings.DORM_CONTACT_PHONE:
        lines.append(f"โทร: {settings.DORM_CONTACT_PHONE}")
    if settings.DORM_CONTACT_LINE_ID:
        lines.append(f"LINE: {settings.DORM_CONTACT_LINE_ID}")
    await ctx.reply("\n".join(lines) if lines else constants.CONTACT_INFO_MISSING)
