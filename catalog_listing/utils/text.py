import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

def normalize_whitespace(text: str | None) -> str | None:
    if not text:
        return None
    return re.sub(r"\s+", " ", text).strip() or None

def normalize_lower(values: Iterable[str]) -> list[str]:
    """Trim + lowercase, dropping blanks. Used for category-name matching."""
    out: list[str] = []
    for v in values:
        s = (v or "").strip().lower()
        if s:
            out.append(s)
    return out

def to_decimal_price(val) -> Optional[Decimal]:
    """Backend price (int/float/str, thousands commas tolerated) -> Decimal with 2 places."""
    if val is None:
        return None
    return _quantized(str(val).replace(",", ""))

def _quantized(s: str) -> Optional[Decimal]:
    try:
        d = Decimal(s.strip())
        if not d.is_finite():
            return None
        return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return None

def parse_price(text: str | None) -> Optional[float]:
    """Raw price input -> float with 2 decimals, or None for blank/negative/garbage.

    Strict: separators are not stripped, so "1,5" is garbage rather than 15.
    """
    if text is None or not str(text).strip():
        return None
    d = _quantized(str(text))
    if d is None or d < 0:
        return None
    value = float(d)
    return value if math.isfinite(value) else None

def price_param(value: float) -> str:
    """Render a price as a plain decimal query value: 20 -> "20", 19.9 -> "19.9"."""
    d = to_decimal_price(value)
    if d is None:
        raise ValueError(f"not a finite price: {value!r}")
    return format(d.normalize(), "f")
