"""
Precision constants and helpers for Aethera Staking.

APT amounts carry 8 decimal places of precision:

    1 APT = 100,000,000 octas (smallest indivisible unit)

Every amount crossing the chain boundary is an integer octa count.
Conversions from user-entered decimal APT go through ``Decimal`` so no
binary floating-point dust reaches a transaction argument.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_DOWN, Decimal, InvalidOperation

# Number of decimal places for APT amounts.
APT_DECIMALS: int = 8

# 1 octa = 0.00000001 APT, the smallest representable unit.
OCTAS_PER_APT: int = 10 ** APT_DECIMALS  # 100_000_000

_QUANT = Decimal(1).scaleb(-APT_DECIMALS)


def apt_to_octas(value: str | int | float | Decimal) -> int:
    """Convert an APT amount to an integer octa count, truncating sub-octa dust.

    >>> apt_to_octas("1.5")
    150000000
    """
    try:
        dec = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc
    if not dec.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return int((dec * OCTAS_PER_APT).to_integral_value(rounding=ROUND_DOWN))


def octas_to_apt(octas: int | str) -> Decimal:
    """Convert an octa count (int or decimal string) to an exact APT ``Decimal``."""
    return (Decimal(int(octas)) / OCTAS_PER_APT).quantize(_QUANT)


def format_apt(octas: int | str) -> str:
    """Return the octa amount as an APT string with 8 decimal places."""
    return f"{octas_to_apt(octas):.{APT_DECIMALS}f}"


def format_duration(seconds: int) -> str:
    """Short countdown label: ``2d 3h``, ``4h 10m``, ``5m`` or ``Unlocked``."""
    if seconds <= 0:
        return "Unlocked"
    days, rem = divmod(int(seconds), 86_400)
    hours, rem = divmod(rem, 3_600)
    minutes = rem // 60
    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_timestamp(timestamp: int) -> str:
    """Render a unix timestamp in local time."""
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")
