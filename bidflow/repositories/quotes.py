# bidflow/repositories/quotes.py
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from bidflow.core.errors import NotFoundError, QuoteNotFound, QuoteValidationError
from bidflow.core.logging_config import logger
from bidflow.core.settings import get_settings
from bidflow.models.quote import Quote, QuoteItem
from bidflow.pricing.calculator import QuoteTotals
from bidflow.pricing.discount import DiscountPolicy
from bidflow.repositories.clients import require_client
from bidflow.repositories.templates import (
    apply_template,
    refresh_template_snapshot,
    require_template,
)
from bidflow.schemas.quote import DiscountIn, LineItemDraft, LineItemUpdate, QuoteCreate
from bidflow.services.activity import QUOTE, record_activity


def _next_position(quote: Quote) -> int:
    return max((i.position for i in quote.items), default=-1) + 1


def _commit(db: Session, quote: Quote) -> Quote:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(quote)
    return quote


def create_quote(
    db: Session,
    data: QuoteCreate,
    actor: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Quote:
    if data.client_id:
        require_client(db, data.client_id)
    template = require_template(db, data.template_id) if data.template_id else None

    quote = Quote(
        title=data.title,
        client_id=data.client_id,
        request_id=data.request_id,
        currency=(data.currency or get_settings().default_currency).upper(),
        notes=data.notes,
        fallback_amount_cents=data.fallback_amount_cents,
    )
    quote.discount_policy = data.discount.to_policy()
    for position, draft in enumerate(data.items):
        quote.items.append(_item_from_draft(draft, position))

    db.add(quote)
    db.flush()
    record_activity(db, QUOTE, quote.id, "created", payload={"title": quote.title}, actor=actor, now=now)
    _commit(db, quote)

    logger.bind(quote_id=quote.id).info("quote_created", items=len(quote.items))

    if template is not None:
        quote = apply_template(db, quote, template, actor=actor, now=now)
    return quote


def get_quote(db: Session, quote_id: str) -> Optional[Quote]:
    return db.query(Quote).filter(Quote.id == quote_id).first()


def require_quote(db: Session, quote_id: str) -> Quote:
    quote = get_quote(db, quote_id)
    if quote is None:
        raise QuoteNotFound(f"quote {quote_id} not found", quote_id=quote_id)
    return quote


def list_quotes(db: Session, status: Optional[str] = None) -> List[Quote]:
    q = db.query(Quote)
    if status:
        q = q.filter(Quote.status == status)
    return q.order_by(Quote.created_at.desc()).all()


def quote_totals(quote: Quote) -> QuoteTotals:
    """Live totals; never cached on the row."""
    return quote.totals


def _item_from_draft(draft: LineItemDraft, position: int) -> QuoteItem:
    return QuoteItem(
        title=draft.title,
        description=draft.description,
        quantity=draft.quantity,
        unit_price_cents=draft.unit_price_cents,
        sort_order=draft.sort_order,
        position=position,
    )


def _find_item(quote: Quote, item_id: str) -> QuoteItem:
    for item in quote.items:
        if item.id == item_id:
            return item
    raise NotFoundError(f"item {item_id} not found on quote {quote.id}", quote_id=quote.id, item_id=item_id)


def add_item(
    db: Session,
    quote: Quote,
    draft: LineItemDraft,
    actor: Optional[str] = None,
    now: Optional[datetime] = None,
) -> QuoteItem:
    item = _item_from_draft(draft, _next_position(quote))
    quote.items.append(item)
    refresh_template_snapshot(db, quote, now=now)
    db.flush()
    record_activity(
        db,
        QUOTE,
        quote.id,
        "item_added",
        payload={"item_id": item.id, "title": item.title, "line_total_cents": item.line_total_cents},
        actor=actor,
        now=now,
    )
    _commit(db, quote)
    db.refresh(item)

    logger.bind(quote_id=quote.id).info("quote_item_added", item_id=item.id)
    return item


def update_item(
    db: Session,
    quote: Quote,
    item_id: str,
    changes: LineItemUpdate,
    now: Optional[datetime] = None,
) -> QuoteItem:
    item = _find_item(quote, item_id)
    for key, value in changes.model_dump(exclude_unset=True).items():
        if value is None and key != "description":
            continue
        setattr(item, key, value)
    refresh_template_snapshot(db, quote, now=now)
    _commit(db, quote)
    db.refresh(item)
    return item


def remove_item(db: Session, quote: Quote, item_id: str, now: Optional[datetime] = None) -> Quote:
    item = _find_item(quote, item_id)
    quote.items.remove(item)
    refresh_template_snapshot(db, quote, now=now)
    return _commit(db, quote)


def set_discount(
    db: Session,
    quote: Quote,
    policy: Union[DiscountPolicy, DiscountIn],
    now: Optional[datetime] = None,
) -> Quote:
    """Switching type zeroes the other value (see policy_to_columns)."""
    if isinstance(policy, DiscountIn):
        policy = policy.to_policy()
    quote.discount_policy = policy
    refresh_template_snapshot(db, quote, now=now)
    return _commit(db, quote)


def set_fallback_amount(
    db: Session, quote: Quote, amount_cents: int, now: Optional[datetime] = None
) -> Quote:
    if amount_cents is None or int(amount_cents) < 0:
        raise QuoteValidationError("fallback amount must be >= 0", quote_id=quote.id)
    quote.fallback_amount_cents = int(amount_cents)
    refresh_template_snapshot(db, quote, now=now)
    return _commit(db, quote)


def delete_quote(db: Session, quote: Quote) -> None:
    """Items go with the quote; versions stay with quote_id set to NULL."""
    quote_id = quote.id
    db.delete(quote)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.bind(quote_id=quote_id).info("quote_deleted")
