from .calculator import QuoteTotals, discount_amount, items_subtotal, line_total, quote_total
from .discount import (
    NO_DISCOUNT,
    DiscountPolicy,
    DiscountType,
    FixedAmountDiscount,
    NoDiscount,
    PercentDiscount,
    policy_from_columns,
    policy_to_columns,
)
from .money import format_currency

__all__ = [
    "QuoteTotals",
    "discount_amount",
    "items_subtotal",
    "line_total",
    "quote_total",
    "NO_DISCOUNT",
    "DiscountPolicy",
    "DiscountType",
    "FixedAmountDiscount",
    "NoDiscount",
    "PercentDiscount",
    "policy_from_columns",
    "policy_to_columns",
    "format_currency",
]
