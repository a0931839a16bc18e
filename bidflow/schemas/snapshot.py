# bidflow/schemas/snapshot.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bidflow.core.errors import SnapshotSchemaError
from bidflow.pricing.calculator import quote_total
from bidflow.pricing.discount import DiscountPolicy, policy_from_columns

SNAPSHOT_SCHEMA_VERSION = 1


class SnapshotItem(BaseModel):
    """
    Line item copied by value. Extra keys are ignored so snapshots written
    by a newer schema still parse.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    title: str
    description: Optional[str] = None
    quantity: int = Field(1, ge=0)
    unit_price_cents: int = Field(0, ge=0)
    sort_order: int = 0


class SnapshotQuote(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = None
    title: str = ""
    currency: str = "BRL"
    status: Optional[str] = None

    discount_type: Optional[str] = None
    discount_percent: Decimal = Decimal("0")
    discount_amount_cents: int = 0
    fallback_amount_cents: int = 0

    # totals as computed when the snapshot was taken
    subtotal_cents: int = 0
    discount_cents: int = 0
    total_cents: int = 0


class QuoteSnapshotV1(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    schema_version: Literal[1] = SNAPSHOT_SCHEMA_VERSION
    quote: SnapshotQuote
    items: List[SnapshotItem] = Field(default_factory=list)

    @property
    def discount_policy(self) -> DiscountPolicy:
        q = self.quote
        return policy_from_columns(q.discount_type, q.discount_percent, q.discount_amount_cents)

    def recomputed_total(self) -> int:
        """Total recomputed from the frozen items, or the recorded lump sum without items."""
        if not self.items:
            return max(0, self.quote.fallback_amount_cents)
        return quote_total(self.items, self.discount_policy, self.quote.fallback_amount_cents).total

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


def build_snapshot(quote) -> QuoteSnapshotV1:
    """Freeze an ORM Quote (fields + items) into a snapshot. Items are copied by value."""
    totals = quote.totals
    return QuoteSnapshotV1(
        quote=SnapshotQuote(
            id=quote.id,
            title=quote.title,
            currency=quote.currency,
            status=quote.status,
            discount_type=quote.discount_type,
            discount_percent=Decimal(str(quote.discount_percent or 0)),
            discount_amount_cents=int(quote.discount_amount_cents or 0),
            fallback_amount_cents=int(quote.fallback_amount_cents or 0),
            subtotal_cents=totals.subtotal,
            discount_cents=totals.discount,
            total_cents=totals.total,
        ),
        items=[
            SnapshotItem(
                title=i.title,
                description=i.description,
                quantity=i.quantity,
                unit_price_cents=i.unit_price_cents,
                sort_order=i.sort_order,
            )
            for i in quote.items
        ],
    )


def _upgrade_legacy(data: Dict[str, Any]) -> Dict[str, Any]:
    # Blobs from before schema_version existed: {"quote": {..., "amount_cents"}, "items": [...]}
    q = dict(data.get("quote") or {})
    discount_type = q.get("discount_type")
    if discount_type == "quantity":
        discount_type = "fixed_amount"
    q["discount_type"] = discount_type
    q["discount_percent"] = q.get("discount_percent") or 0
    q.setdefault("discount_amount_cents", q.get("discount_quantity") or 0)
    q.setdefault("fallback_amount_cents", q.get("amount_cents") or 0)
    q.setdefault("total_cents", q.get("amount_cents") or 0)
    return {
        "schema_version": SNAPSHOT_SCHEMA_VERSION,
        "quote": q,
        "items": list(data.get("items") or []),
    }


def parse_snapshot(data: Any) -> QuoteSnapshotV1:
    if isinstance(data, QuoteSnapshotV1):
        return data
    if not isinstance(data, dict):
        raise SnapshotSchemaError("snapshot must be an object")

    version = data.get("schema_version")
    if version is None:
        if "quote" not in data:
            raise SnapshotSchemaError("snapshot has no schema_version")
        data = _upgrade_legacy(data)
    elif version != SNAPSHOT_SCHEMA_VERSION:
        raise SnapshotSchemaError(
            f"unsupported snapshot schema_version={version!r}", schema_version=version
        )

    try:
        return QuoteSnapshotV1.model_validate(data)
    except ValidationError as e:
        raise SnapshotSchemaError(str(e)) from e
