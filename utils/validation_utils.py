"""
utils/validation_utils.py

Purpose: Input validation and parsing

- Thai phone number variants (0x / 66x / +66x)
- Six-digit staff verification codes
- "ชำระค่าห้อง <เดือน> <ปี>" parsing
- Tenant move-out plan parsing
- LINE user id normalization
- Staff "ตึก / ชั้น / ห้อง" text navigation
"""

import re
from typing import List, Optional, Tuple
from datetime import datetime


PHONE_PATTERN = re.compile(r"^(\+66\d{9}|66\d{9}|0\d{9})$")
VERIFY_CODE_PATTERN = re.compile(r"^\d{6}$")
MOVEOUT_DAYS_PATTERN = re.compile(r"ย้ายออกอีก\s+(\d{1,2})\s*วัน")
MOVEOUT_MONTH_END_PATTERN = re.compile(r"ออกสิ้นเดือน|ย้ายออกสิ้นเดือน")
STAFF_NAV_PATTERN = re.compile(r"^(ตึก|ชั้น|ห้อง)\s*(\S.*)$")

THAI_MONTHS = [
    "มกราคม",
    "กุมภาพันธ์",
    "มีนาคม",
    "เมษายน",
    "พฤษภาคม",
    "มิถุนายน",
    "กรกฎาคม",
    "สิงหาคม",
    "กันยายน",
    "ตุลาคม",
    "พฤศจิกายน",
    "ธันวาคม",
]

LINE_ID_PREFIX = "line:"


def normalize_line_user_id(user_id: Optional[str]) -> str:
    """
    Normalizes a LINE user id for role comparisons.

    Case-folds and strips a leading ``line:`` platform prefix so that
    ``LINE:Uabc`` and ``uabc`` compare equal.
    """
    value = (user_id or "").strip().lower()
    if value.startswith(LINE_ID_PREFIX):
        value = value[len(LINE_ID_PREFIX):]
    return value.strip()


def clean_phone(text: str) -> str:
    return re.sub(r"[\s-]", "", text or "")


def is_phone_number(text: str) -> bool:
    """True for 0xxxxxxxxx, 66xxxxxxxxx or +66xxxxxxxxx."""
    return bool(PHONE_PATTERN.match(clean_phone(text)))


def phone_variants(text: str) -> List[str]:
    """
    Expands a Thai phone number to every stored spelling.

    Args:
        text: Raw phone input from the chat

    Returns:
        Unique list, original spelling first

    Example:
        >>> phone_variants("0812345678")
        ['0812345678', '+66812345678', '66812345678']
    """
    raw = clean_phone(text)
    variants = [raw]

    if re.match(r"^\+66\d{9}$", raw):
        variants += ["0" + raw[3:], raw[1:]]
    elif re.match(r"^0\d{9}$", raw):
        variants += ["+66" + raw[1:], "66" + raw[1:]]
    elif re.match(r"^66\d{9}$", raw):
        variants += ["+66" + raw[2:], "0" + raw[2:]]

    seen = []
    for v in variants:
        if v not in seen:
            seen.append(v)
    return seen


def is_verify_code(text: str) -> bool:
    return bool(VERIFY_CODE_PATTERN.match((text or "").strip()))


def parse_pay_rent_text(text: str, now: Optional[datetime] = None) -> Optional[Tuple[int, int]]:
    """
    Parses "ชำระค่าห้อง <เดือน> [ปี]".

    The month may be a Thai month name or 1-12; the year must be in
    2000-3000 and defaults to the current year.

    Returns:
        (month, year) or None when no month is present
    """
    parts = re.sub(r"\s+", " ", text or "").strip().split(" ")
    if len(parts) < 2:
        return None

    month = None
    year = None
    for token in parts[1:]:
        if month is None:
            if token in THAI_MONTHS:
                month = THAI_MONTHS.index(token) + 1
                continue
            if token.isdigit() and 1 <= int(token) <= 12:
                month = int(token)
                continue
        elif year is None:
            if token.isdigit() and 2000 <= int(token) <= 3000:
                year = int(token)
                continue

    if month is None:
        return None

    now = now or datetime.now()
    return month, year or now.year


def parse_moveout_plan(text: str) -> Optional[str]:
    """
    Reads a tenant's move-out plan.

    Returns:
        "<n> วัน", "สิ้นเดือน", or None when the text is not a plan
    """
    text = (text or "").strip()

    match = MOVEOUT_DAYS_PATTERN.search(text)
    if match:
        return f"{int(match.group(1))} วัน"

    if MOVEOUT_MONTH_END_PATTERN.search(text):
        return "สิ้นเดือน"

    return None


def parse_staff_navigation(text: str) -> Optional[Tuple[str, str]]:
    """
    Reads staff drill-down text.

    Returns:
        ("BUILDING", token), ("FLOOR", "3") or ("ROOM", "101"); None otherwise.
        A floor that is not a number is not navigation.

    Example:
        >>> parse_staff_navigation("ชั้น 3")
        ('FLOOR', '3')
    """
    match = STAFF_NAV_PATTERN.match((text or "").strip())
    if not match:
        return None

    word, value = match.group(1), match.group(2).strip()
    if word == "ตึก":
        return "BUILDING", value
    if word == "ชั้น":
        return ("FLOOR", value) if value.isdigit() else None
    return "ROOM", value
