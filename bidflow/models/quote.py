# bidflow/models/quote.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bidflow.db import Base
from bidflow.models.mixins import TimestampMixin, new_id
from bidflow.pricing.calculator import QuoteTotals, quote_total
from bidflow.pricing.discount import DiscountPolicy, policy_from_columns, policy_to_columns


class Quote(TimestampMixin, Base):
    __tablename__ = "quotes"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    client_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("clients.id", ondelete="SET NULL"), index=True, nullable=True
    )
    # lead / request this quote originated from
    request_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="BRL")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="draft", server_default="draft", index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # lump-sum amount, only used while the quote has no items
    fallback_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # discount: both values persisted, only discount_type's value applies
    discount_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    discount_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("0")
    )
    discount_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    template_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("proposal_templates.id", ondelete="SET NULL"), nullable=True
    )
    template_snapshot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # public share link (set when status becomes "sent")
    public_token: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, index=True, nullable=True
    )
    public_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[List["QuoteItem"]] = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [QuoteItem.sort_order, QuoteItem.position],
    )

    client = relationship("Client")
    template = relationship("ProposalTemplate")

    @property
    def discount_policy(self) -> DiscountPolicy:
        return policy_from_columns(
            self.discount_type, self.discount_percent, self.discount_amount_cents
        )

    @discount_policy.setter
    def discount_policy(self, policy: DiscountPolicy) -> None:
        self.discount_type, self.discount_percent, self.discount_amount_cents = (
            policy_to_columns(policy)
        )

    @property
    def totals(self) -> QuoteTotals:
        return quote_total(self.items, self.discount_policy, self.fallback_amount_cents)

    def __repr__(self) -> str:
        return f"<Quote id={self.id} status={self.status} title={self.title!r}>"


class QuoteItem(TimestampMixin, Base):
    __tablename__ = "quote_items"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    quote_id: Mapped[str] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"), index=True, nullable=False
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # insertion sequence, breaks sort_order ties
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quote: Mapped["Quote"] = relationship("Quote", back_populates="items")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    def __repr__(self) -> str:
        return (
            f"<QuoteItem quote_id={self.quote_id} title={self.title!r} "
            f"qty={self.quantity} unit={self.unit_price_cents}>"
        )
