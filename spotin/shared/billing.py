"""Billing helpers: money rounding, receipt numbers, timestamps"""

import random
import time
from datetime import datetime, timezone

# Payment methods a receipt can be settled with
PAYMENT_METHODS = ("cash", "card", "mobile")


def round_money(value: float) -> float:
    """Round to the smallest currency unit (piastres / cents)"""
    return round(float(value or 0), 2)


def line_total(price: float, quantity: int) -> float:
    return round_money(price * quantity)


def percentage_of(amount: float, percentage: float) -> float:
    """Discount amount for a percentage in 0..100"""
    return round_money(amount * (percentage or 0) / 100)


def generate_receipt_number() -> str:
    """RCP-<epoch millis>-<3 random digits>"""
    return f"RCP-{int(time.time() * 1000)}-{random.randint(0, 999):03d}"


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how the database stores DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hours_until(moment: datetime, now: datetime) -> float:
    """Hours left before `moment`, never negative"""
    return max(0.0, round((moment - now).total_seconds() / 3600, 1))
