"""
app/services/slip_service.py

Purpose: Slip verification adapter (SlipOK)

- Submits a slip by URL (JSON) or by bytes (multipart)
- Tolerates non-JSON bodies and missing fields
- Maps the provider payload into a typed SlipVerdict
- ok = HTTP success AND a success pattern in the message text
- Response code 1012 marks a duplicate slip
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import httpx

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

SUCCESS_PATTERN = re.compile(r"Correct QR Verification|Valid Amount|OK|success|valid", re.IGNORECASE)
DUPLICATE_CODE = 1012

AMOUNT_KEYS = ["amount", "paidAmount", "total", "value", "price"]
BANK_REF_KEYS = ["bankRef", "reference", "ref", "transRef"]
SOURCE_BANK_KEYS = ["sourceBank", "senderBank", "fromBank", "originBank", "payerBank", "srcBank", "bank_from"]
SOURCE_ACCOUNT_KEYS = [
    "sourceAccount", "senderAccount", "fromAccount", "originAccount",
    "payerAccount", "srcAccount", "accountFrom",
]
DEST_BANK_KEYS = ["destinationBank", "receiverBank", "toBank", "bank", "bankName", "bank_code"]
DEST_ACCOUNT_KEYS = ["destinationAccount", "receiverAccount", "toAccount", "accountNo", "account"]
TRANSACTED_AT_KEYS = ["transactedAt", "datetime", "timestamp"]


@dataclass
class SlipVerdict:
    """
    Normalized result of a slip verification.
    """
    ok: bool
    message: str
    duplicate: bool = False
    amount: Optional[float] = None
    bank_ref: Optional[str] = None
    source_bank: Optional[str] = None
    source_account: Optional[str] = None
    dest_bank: Optional[str] = None
    dest_account: Optional[str] = None
    transacted_at: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def to_meta(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "destBank": self.dest_bank,
            "destAccount": self.dest_account,
            "transactedAt": self.transacted_at,
            "bankRef": self.bank_ref,
            "message": self.message,
            "duplicate": self.duplicate,
        }


# ============================================================
# EXTRACTION
# ============================================================

def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def pick_string(sources: List[Dict[str, Any]], keys: List[str]) -> Optional[str]:
    """
    First non-empty string (or finite number, stringified) found under
    ``keys``, searching each source in order.
    """
    for key in keys:
        for source in sources:
            value = source.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if _is_finite_number(value):
                return str(value)
    return None


def pick_number(sources: List[Dict[str, Any]], keys: List[str]) -> Optional[float]:
    """
    First finite number (or numeric string) found under ``keys``.

    Example:
        >>> pick_number([{"amount": "1234.00"}], ["amount"])
        1234.0
    """
    for key in keys:
        for source in sources:
            value = source.get(key)
            if _is_finite_number(value):
                return float(value)
            if isinstance(value, str) and value.strip():
                try:
                    number = float(value.strip().replace(",", ""))
                except ValueError:
                    continue
                if math.isfinite(number):
                    return number
    return None


def parse_verdict(status_ok: bool, payload: Any) -> SlipVerdict:
    """
    Maps a provider response into a SlipVerdict.

    Args:
        status_ok: Whether the HTTP status was 2xx
        payload: Decoded JSON body ({} when the body was not JSON)
    """
    root = payload if isinstance(payload, dict) else {}
    nested = root.get("data") if isinstance(root.get("data"), dict) else {}
    sources = [root, nested]

    message = pick_string([root], ["message", "statusText"]) or ("OK" if status_ok else "ERROR")
    ok = status_ok and bool(SUCCESS_PATTERN.search(message))
    duplicate = pick_number([root], ["code"]) == DUPLICATE_CODE

    amount = pick_number(sources, AMOUNT_KEYS)
    if amount == 0:
        amount = None

    transacted_at = pick_string(sources, TRANSACTED_AT_KEYS)
    if not transacted_at:
        day = pick_string(sources, ["date"])
        clock = pick_string(sources, ["time"])
        transacted_at = " ".join(p for p in (day, clock) if p) or None

    return SlipVerdict(
        ok=ok,
        message=message,
        duplicate=duplicate,
        amount=amount,
        bank_ref=pick_string(sources, BANK_REF_KEYS),
        source_bank=pick_string(sources, SOURCE_BANK_KEYS),
        source_account=pick_string(sources, SOURCE_ACCOUNT_KEYS),
        dest_bank=pick_string(sources, DEST_BANK_KEYS),
        dest_account=pick_string(sources, DEST_ACCOUNT_KEYS),
        transacted_at=transacted_at,
        raw=root,
    )


# ============================================================
# CLIENT
# ============================================================

class SlipVerifier:
    """
    Service class for the SlipOK check endpoint.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        check_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.SLIPOK_API_KEY
        self.check_url = check_url or settings.SLIPOK_CHECK_URL
        self._client = httpx.AsyncClient(timeout=settings.SLIPOK_TIMEOUT, transport=transport)

    async def submit(self, slip: Union[str, bytes], expected_amount: Optional[float] = None) -> SlipVerdict:
        """
        Verifies a slip given as a public URL or as raw image bytes.

        Never raises: transport errors become ``ok=False`` verdicts.
        """
        if not self.api_key:
            return SlipVerdict(ok=False, message="missing api key")

        headers = {"x-authorization": self.api_key}
        try:
            if isinstance(slip, str):
                body: Dict[str, Any] = {"url": slip, "log": True}
                if expected_amount is not None:
                    body["amount"] = expected_amount
                response = await self._client.post(self.check_url, json=body, headers=headers)
            else:
                data = {"log": "true"}
                if expected_amount is not None:
                    data["amount"] = str(expected_amount)
                response = await self._client.post(
                    self.check_url,
                    data=data,
                    files={"files": ("slip.jpg", slip, "image/jpeg")},
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Slip verification request failed: {e}")
            return SlipVerdict(ok=False, message=str(e) or "request failed")

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        verdict = parse_verdict(response.is_success, payload)
        logger.info(
            f"🧾 Slip verdict ok={verdict.ok} duplicate={verdict.duplicate} amount={verdict.amount}"
        )
        return verdict

    async def verify_by_url(self, url: str, expected_amount: Optional[float] = None) -> SlipVerdict:
        return await self.submit(url, expected_amount)

    async def verify_by_data(self, content: bytes, expected_amount: Optional[float] = None) -> SlipVerdict:
        return await self.submit(content, expected_amount)

    async def close(self):
        await self._client.aclose()


_slip_verifier: Optional[SlipVerifier] = None


def get_slip_verifier() -> SlipVerifier:
    """
    Get or create the global slip verifier.
    """
    global _slip_verifier
    if _slip_verifier is None:
        _slip_verifier = SlipVerifier()
    return _slip_verifier


def set_slip_verifier(verifier: Optional[SlipVerifier]) -> None:
    global _slip_verifier
    _slip_verifier = verifier


async def close_slip_verifier():
    global _slip_verifier
    if _slip_verifier is not None:
        await _slip_verifier.close()
        _slip_verifier = None
