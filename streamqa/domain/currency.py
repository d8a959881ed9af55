"""
Currency helpers for smallest-unit integer amounts.

All conversions assume a 1:1 exchange rate between differing asset codes.
Only the decimal scale is honoured; the asset code is carried for display.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal, InvalidOperation


def convert_amount(value: int, from_scale: int, to_scale: int) -> int:
    """
    Re-express a smallest-unit amount at another decimal scale.

    floor(value / 10^from_scale * 10^to_scale), computed exactly in integers.
    Same-scale conversion returns the value unchanged.
    """
    if from_scale < 0 or to_scale < 0:
        raise ValueError(f"Asset scale must be non-negative: {from_scale} -> {to_scale}")
    if from_scale == to_scale:
        return value
    if to_scale > from_scale:
        return value * 10 ** (to_scale - from_scale)
    return value // 10 ** (from_scale - to_scale)


def needs_conversion(
    asset_code: str, asset_scale: int, target_code: str, target_scale: int
) -> bool:
    return asset_code != target_code or asset_scale != target_scale


def parse_display_value(value: str | int | float | None, asset_scale: int) -> int:
    """
    Parse a decimal display string ("1.00") into smallest units at asset_scale.

    Malformed or missing values are treated as zero. Fractions below the
    smallest unit are floored.
    """
    if value is None or value == "":
        return 0
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        return 0
    if not amount.is_finite():
        return 0
    scaled = (amount * (Decimal(10) ** asset_scale)).to_integral_value(rounding=ROUND_FLOOR)
    return int(scaled)


def format_amount(value: int, asset_code: str, asset_scale: int) -> str:
    """Format smallest units for display, e.g. 125 USD/2 -> '1.25 USD'."""
    display = Decimal(value).scaleb(-asset_scale)
    return f"{display:.{asset_scale}f} {asset_code}"
