# bidflow/schemas/quote.py
from __future__ import annotations

from decimal import Decimal
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from bidflow.pricing.discount import (
    NO_DISCOUNT,
    DiscountPolicy,
    FixedAmountDiscount,
    PercentDiscount,
)


def _required_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty")
    return v


def _optional_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


RequiredText = Annotated[str, AfterValidator(_required_text)]
OptionalText = Annotated[Optional[str], AfterValidator(_optional_text)]


class LineItemDraft(BaseModel):
    """Line item as entered, before it belongs to a persisted quote."""

    model_config = ConfigDict(extra="forbid")

    title: RequiredText = Field(..., description="Item title")
    description: OptionalText = Field(None, description="Optional description")
    quantity: int = Field(1, ge=1, description="Quantity (positive integer)")
    unit_price_cents: int = Field(0, ge=0, description="Unit price in cents")
    sort_order: int = Field(0, description="Display/print order")


class LineItemUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[RequiredText] = None
    description: OptionalText = None
    quantity: Optional[int] = Field(None, ge=1)
    unit_price_cents: Optional[int] = Field(None, ge=0)
    sort_order: Optional[int] = None


class DiscountIn(BaseModel):
    """
    Discount as entered in the admin form. Out-of-range values are clamped,
    not rejected: percent to [0, 100], fixed amount to >= 0 (the upper bound
    depends on the subtotal and is applied by the calculator).
    """

    type: Optional[Literal["percent", "fixed_amount"]] = None
    percent: Decimal = Decimal("0")
    amount_cents: int = 0

    @field_validator("percent")
    @classmethod
    def _clamp_percent(cls, v: Decimal) -> Decimal:
        if v.is_nan():
            return Decimal("0")
        return max(Decimal("0"), min(v, Decimal("100")))

    @field_validator("amount_cents")
    @classmethod
    def _clamp_amount(cls, v: int) -> int:
        return max(0, v)

    def to_policy(self) -> DiscountPolicy:
        if self.type == "percent":
            return PercentDiscount(self.percent)
        if self.type == "fixed_amount":
            return FixedAmountDiscount(self.amount_cents)
        return NO_DISCOUNT


class QuoteCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: RequiredText
    client_id: Optional[str] = None
    request_id: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    notes: OptionalText = None
    fallback_amount_cents: int = Field(0, ge=0)
    discount: DiscountIn = Field(default_factory=DiscountIn)
    items: List[LineItemDraft] = Field(default_factory=list)
    template_id: Optional[str] = None


class ClientCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: RequiredText
    email: OptionalText = None
    phone: OptionalText = None


class TemplateCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: RequiredText
    body: str
    service_type: OptionalText = None
    is_active: bool = True


class TemplateUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[RequiredText] = None
    body: Optional[str] = None
    service_type: OptionalText = None
    is_active: Optional[bool] = None
