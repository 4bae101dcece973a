# genboq/utils.py

import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

# BOQ unit prices are held in INR (the oracle is asked for MSRP in INR).
BASE_CURRENCY = "INR"
USD_TO_INR_FALLBACK = 83.5

_NUMERIC_PREFIX = re.compile(r'^\s*([-+]?\d*\.?\d+(?:[eE][-+]?\d+)?)')


def round2(value) -> float:
    """Half-up rounding to 2 decimals (2.675 -> 2.68, unlike round())."""
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def parse_number(value: Any) -> Optional[float]:
    """Read a questionnaire value as a float. '24ft' reads as 24; junk reads as None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _NUMERIC_PREFIX.match(str(value))
        if not match:
            return None
        number = float(match.group(1))
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def get_usd_to_inr_rate(configured: Optional[float] = None) -> float:
    """Configured rate when it is usable, else the static fallback; the catalog carries no live pricing."""
    if configured is not None and configured > 0:
        return float(configured)
    return USD_TO_INR_FALLBACK


def default_rates(usd_to_inr_rate: Optional[float] = None) -> Dict[str, float]:
    """Units of each currency per 1 USD."""
    return {"USD": 1.0, "INR": get_usd_to_inr_rate(usd_to_inr_rate)}


def currency_rate(currency: str, rates: Optional[Dict[str, float]] = None) -> float:
    """Multiplier from BOQ prices (INR) into the display currency."""
    rates = {**default_rates(), **(rates or {})}
    if currency not in rates or not rates[BASE_CURRENCY]:
        return 1.0
    return rates[currency] / rates[BASE_CURRENCY]


def to_base_currency(amount: float, currency: str, usd_to_inr_rate: Optional[float] = None) -> float:
    """Catalog price in its own currency -> INR."""
    if currency == "USD":
        return round2(amount * get_usd_to_inr_rate(usd_to_inr_rate))
    return round2(amount)


def format_currency(amount, currency="INR"):
    """Format currency with proper symbols and formatting."""
    if currency == "INR":
        return f"₹{amount:,.2f}"
    return f"${amount:,.2f}"
