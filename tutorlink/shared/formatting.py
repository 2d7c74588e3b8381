"""Display formatting for notification and email text"""

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def quantize_amount(amount) -> Decimal:
    """Money to 2 decimal places"""
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_peso(amount) -> str:
    return f"₱{quantize_amount(amount):,.2f}"


def format_session_date(value: date) -> str:
    return value.strftime("%B %d, %Y")


def format_session_time(hhmm: str) -> str:
    """Render "14:30" as "2:30 PM"."""
    parsed = datetime.strptime(hhmm, "%H:%M")
    return parsed.strftime("%I:%M %p").lstrip("0")


def session_start(on_date: date, hhmm: str) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":")[:2])
    return datetime.combine(on_date, datetime.min.time()) + timedelta(hours=hours, minutes=minutes)
