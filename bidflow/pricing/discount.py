from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Union

D = Decimal


class DiscountType(str, Enum):
    PERCENT = "percent"
    FIXED_AMOUNT = "fixed_amount"


@dataclass(frozen=True)
class NoDiscount:
    kind = None


@dataclass(frozen=True)
class PercentDiscount:
    """Percentage of the items subtotal, clamped to [0, 100] when applied."""

    value: D = D("0")
    kind = DiscountType.PERCENT

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", D(str(self.value)))


@dataclass(frozen=True)
class FixedAmountDiscount:
    """Amount in cents, clamped to [0, subtotal] when applied."""

    value: int = 0
    kind = DiscountType.FIXED_AMOUNT


DiscountPolicy = Union[NoDiscount, PercentDiscount, FixedAmountDiscount]

NO_DISCOUNT = NoDiscount()


def policy_from_columns(
    discount_type: Optional[str],
    discount_percent: Union[D, int, float, str, None] = None,
    discount_amount_cents: Optional[int] = None,
) -> DiscountPolicy:
    """
    Build the policy from the persisted columns. Only the active type's
    value is read; the other column is ignored even when non-zero.
    """
    if discount_type in (DiscountType.PERCENT, DiscountType.PERCENT.value):
        return PercentDiscount(D(str(discount_percent or 0)))
    if discount_type in (DiscountType.FIXED_AMOUNT, DiscountType.FIXED_AMOUNT.value):
        return FixedAmountDiscount(int(discount_amount_cents or 0))
    return NO_DISCOUNT


def policy_to_columns(policy: DiscountPolicy) -> Tuple[Optional[str], D, int]:
    """
    (discount_type, discount_percent, discount_amount_cents).
    The inactive value is always reset to zero.
    """
    if isinstance(policy, PercentDiscount):
        return DiscountType.PERCENT.value, policy.value, 0
    if isinstance(policy, FixedAmountDiscount):
        return DiscountType.FIXED_AMOUNT.value, D("0"), int(policy.value)
    return None, D("0"), 0
