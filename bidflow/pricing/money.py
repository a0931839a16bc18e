from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from bidflow.core.errors import QuoteValidationError

D = Decimal

# Money is always an int: minor units (cents). Never a float.
Cents = int


def round_half_up(value: Union[Decimal, int, str]) -> int:
    """Round to the nearest whole minor unit, .5 goes up."""
    return int(D(value).quantize(D("1"), rounding=ROUND_HALF_UP))


def clamp(value, lower, upper):
    return max(lower, min(value, upper))


def format_number(cents: int, decimal_sep: str = ",", thousand_sep: str = ".") -> str:
    # 123456789 -> 1.234.567,89
    whole, frac = divmod(abs(int(cents)), 100)
    digits = str(whole)
    parts = []
    while digits:
        parts.append(digits[-3:])
        digits = digits[:-3]
    return f"{thousand_sep.join(reversed(parts))}{decimal_sep}{frac:02d}"


def format_currency(
    cents: Optional[int],
    currency_symbol: Optional[str] = None,
    decimal_sep: Optional[str] = None,
    thousand_sep: Optional[str] = None,
) -> str:
    """
    Format minor units as a currency string, e.g. 90000 -> "R$ 900,00".
    None counts as zero. Negative amounts get a leading minus: "-R$ 10,00".
    Separators default to the configured locale.
    """
    if currency_symbol is None or decimal_sep is None or thousand_sep is None:
        from bidflow.core.settings import get_settings

        s = get_settings()
        currency_symbol = s.currency_symbol if currency_symbol is None else currency_symbol
        decimal_sep = s.decimal_sep if decimal_sep is None else decimal_sep
        thousand_sep = s.thousand_sep if thousand_sep is None else thousand_sep

    amount = int(cents or 0)
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol} {format_number(amount, decimal_sep, thousand_sep)}"


def parse_amount_to_cents(text: str) -> int:
    """
    Parse an admin-typed amount ("1.234,56", "1234.56", "50") into cents.
    Comma is treated as the decimal separator when present.
    """
    raw = (text or "").strip().replace(" ", "")
    if not raw:
        return 0
    if "," in raw:
        raw = raw.replace(".", "").replace(",", ".")
    try:
        value = D(raw)
    except InvalidOperation as e:
        raise QuoteValidationError(f"invalid amount: {text!r}") from e
    if not value.is_finite() or value < 0:
        raise QuoteValidationError(f"amount must be >= 0: {text!r}")
    return round_half_up(value * 100)
