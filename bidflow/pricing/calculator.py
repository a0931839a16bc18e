from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from bidflow.pricing.discount import (
    NO_DISCOUNT,
    DiscountPolicy,
    FixedAmountDiscount,
    PercentDiscount,
)
from bidflow.pricing.money import clamp, round_half_up

D = Decimal


class PricedLine(Protocol):
    quantity: int
    unit_price_cents: int


@dataclass(frozen=True)
class QuoteTotals:
    subtotal: int
    discount: int
    total: int

    def as_dict(self) -> dict:
        return {"subtotal": self.subtotal, "discount": self.discount, "total": self.total}


def line_total(item: PricedLine) -> int:
    return int(item.quantity) * int(item.unit_price_cents)


def items_subtotal(items: Iterable[PricedLine]) -> int:
    return sum((line_total(i) for i in items), 0)


def discount_amount(subtotal: int, policy: Optional[DiscountPolicy]) -> int:
    """
    Discount in cents for a given subtotal. Clamps instead of raising:
    - percent: round half-up of subtotal * clamp(p, 0, 100) / 100
    - fixed: clamp(a, 0, subtotal)
    A subtotal <= 0 never gets a discount.
    """
    if policy is None or subtotal <= 0:
        return 0

    if isinstance(policy, PercentDiscount):
        pct = policy.value
        if pct.is_nan():
            return 0
        pct = clamp(pct, D("0"), D("100"))
        return round_half_up(D(subtotal) * pct / D("100"))

    if isinstance(policy, FixedAmountDiscount):
        try:
            amount = int(policy.value)
        except (TypeError, ValueError, OverflowError):
            # NaN, infinity or garbage: no discount
            return 0
        return clamp(amount, 0, subtotal)

    return 0


def quote_total(
    items: Sequence[PricedLine],
    policy: Optional[DiscountPolicy] = NO_DISCOUNT,
    fallback_amount: Optional[int] = 0,
) -> QuoteTotals:
    # no items: lump-sum amount, discount does not apply
    if not items:
        return QuoteTotals(subtotal=0, discount=0, total=max(0, int(fallback_amount or 0)))

    subtotal = items_subtotal(items)
    discount = discount_amount(subtotal, policy)
    return QuoteTotals(subtotal=subtotal, discount=discount, total=max(0, subtotal - discount))
