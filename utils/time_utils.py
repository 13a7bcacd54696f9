"""
utils/time_utils.py

Purpose: Time helpers

- Bangkok local time for user-facing dates
- Thai month labels
- Usage-quota month keys
"""

import calendar
from datetime import datetime, date, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from utils.validation_utils import THAI_MONTHS

BANGKOK = ZoneInfo("Asia/Bangkok")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def bangkok_today() -> date:
    return datetime.now(BANGKOK).date()


def thai_month(month: Optional[int]) -> str:
    """
    Thai month name, clamped to 1-12.
    """
    index = max(0, min(11, (month or 1) - 1))
    return THAI_MONTHS[index]


def period_label(month: int, year: int) -> str:
    return f"{thai_month(month)} {year}"


def add_months(day: date, months: int) -> date:
    """
    Adds calendar months, clamping the day to the target month's length.
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def format_bangkok(value: Optional[str]) -> str:
    """
    Formats an ISO timestamp in Bangkok time, or "—" when missing/unparseable.
    """
    if not value:
        return "—"
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(BANGKOK).strftime("%d/%m/%Y %H:%M")


def parse_transacted_at(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=BANGKOK)
    return parsed


def usage_month_key(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(BANGKOK)
    return now.strftime("%Y-%m")
