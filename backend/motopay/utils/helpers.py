"""
Helpers — money arithmetic, reference numbers, dates and pagination.
"""
import secrets
import time
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal("0.01")
_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_money(value) -> Decimal:
    """Coerce to a 2dp Decimal. Floats go through str() so 0.1 stays 0.1."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable) -> Decimal:
    return to_money(sum((to_money(v) for v in values), Decimal("0")))


def percentage_of(amount: Decimal, percent: Decimal) -> Decimal:
    """amount × percent / 100, rounded half-up to 2 decimal places."""
    return (to_money(amount) * Decimal(percent) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_fee(amount: Decimal, percent: Decimal = Decimal("1.5")) -> Decimal:
    return percentage_of(amount, percent)


def to_minor_units(amount: Decimal) -> int:
    """Naira → kobo. Exact for any 2dp Decimal."""
    return int(to_money(amount) * 100)


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_reference(prefix: str) -> str:
    """TXN-<base36 epoch millis>-<5 random base36 chars>."""
    timestamp = _base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"{prefix}-{timestamp}-{random_part}".upper()


def generate_receipt_number(now: datetime | None = None) -> str:
    now = now or datetime.utcnow()
    return f"RCP-{now:%Y%m}-{secrets.token_hex(4).upper()}"


def add_days(date: datetime, days: int) -> datetime:
    return date + timedelta(days=days)


def days_until(target: datetime, now: datetime) -> int:
    """Whole days remaining, rounded up (a record expiring in 6.2 days has 7)."""
    seconds = (target - now).total_seconds()
    return int(-(-seconds // 86400))


def paginate(page: int, limit: int) -> tuple[int, int]:
    page = max(page, 1)
    return (page - 1) * limit, limit


def calculate_pagination(total: int, page: int, limit: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": -(-total // limit) if limit else 0,
    }
