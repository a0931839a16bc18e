# bidflow/services/public_quote.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from bidflow.core.errors import (
    InvalidStatusTransition,
    QuoteValidationError,
    ShareLinkExpired,
    ShareLinkNotFound,
)
from bidflow.core.logging_config import logger
from bidflow.models.mixins import as_utc, utcnow
from bidflow.models.quote import Quote
from bidflow.models.quote_acceptance import QuoteAcceptance
from bidflow.pricing.calculator import QuoteTotals
from bidflow.proposals.document import proposal_filename, render_proposal_pdf
from bidflow.proposals.renderer import ordered_items
from bidflow.repositories.settings import get_company_settings
from bidflow.services.activity import QUOTE, record_activity
from bidflow.services.workflow import APPROVED, LOST, SENT, transition_status

ACCEPTED = "accepted"
DECLINED = "declined"

RESPONSE_TO_STATUS = {
    ACCEPTED: APPROVED,
    DECLINED: LOST,
}


@dataclass(frozen=True)
class PublicItem:
    title: str
    description: Optional[str]
    quantity: int
    unit_price_cents: int
    line_total_cents: int


@dataclass(frozen=True)
class PublicQuoteView:
    """What the client sees behind a share link. Totals are live, not a version."""

    quote_id: str
    title: str
    status: str
    currency: str
    totals: QuoteTotals
    expires_at: Optional[datetime]
    client_name: Optional[str] = None
    notes: Optional[str] = None
    template_snapshot: Optional[str] = None
    items: Tuple[PublicItem, ...] = field(default_factory=tuple)

    @property
    def can_respond(self) -> bool:
        return self.status == SENT


def resolve_token(db: Session, token: str, now: Optional[datetime] = None) -> Quote:
    """
    Unknown token -> ShareLinkNotFound. Known but past expiry -> ShareLinkExpired.
    Callers can tell the two apart.
    """
    quote = db.query(Quote).filter(Quote.public_token == token).first() if token else None
    if quote is None:
        raise ShareLinkNotFound("share link not found")

    expires_at = as_utc(quote.public_expires_at)
    now = as_utc(now) or utcnow()
    if expires_at is not None and expires_at <= now:
        logger.bind(quote_id=quote.id).info("public_link_expired", expired_at=expires_at.isoformat())
        raise ShareLinkExpired(
            "share link expired", quote_id=quote.id, expired_at=expires_at.isoformat()
        )
    return quote


def build_view(quote: Quote) -> PublicQuoteView:
    items: List[PublicItem] = [
        PublicItem(
            title=i.title,
            description=i.description,
            quantity=i.quantity,
            unit_price_cents=i.unit_price_cents,
            line_total_cents=i.line_total_cents,
        )
        for i in ordered_items(quote.items)
    ]
    return PublicQuoteView(
        quote_id=quote.id,
        title=quote.title,
        status=quote.status,
        currency=quote.currency,
        totals=quote.totals,
        expires_at=as_utc(quote.public_expires_at),
        client_name=quote.client.name if quote.client is not None else None,
        notes=quote.notes,
        template_snapshot=quote.template_snapshot,
        items=tuple(items),
    )


def get_public_quote(db: Session, token: str, now: Optional[datetime] = None) -> PublicQuoteView:
    quote = resolve_token(db, token, now=now)
    view = build_view(quote)

    record_activity(db, QUOTE, quote.id, "opened", payload={"status": quote.status}, now=now)
    db.commit()

    logger.bind(quote_id=quote.id).info("public_quote_opened", status=view.status)
    return view


def download_public_proposal(db: Session, token: str, now: Optional[datetime] = None) -> bytes:
    """PDF of the proposal behind a share link; each download is logged on the quote."""
    now = now or utcnow()
    quote = resolve_token(db, token, now=now)
    pdf = render_proposal_pdf(quote, quote.client, get_company_settings(db), now=now)
    filename = proposal_filename(quote)

    record_activity(db, QUOTE, quote.id, "downloaded", payload={"filename": filename}, now=now)
    db.commit()

    logger.bind(quote_id=quote.id).info("public_proposal_downloaded", filename=filename, size_bytes=len(pdf))
    return pdf


def respond_to_quote(
    db: Session,
    token: str,
    response: str,
    name: str,
    accepted_terms: bool,
    comment: Optional[str] = None,
    ip: Optional[str] = None,
    user_agent: Optional[str] = None,
    now: Optional[datetime] = None,
) -> QuoteAcceptance:
    """
    Client accepts or declines a sent quote through its share link.
    accepted -> approved, declined -> lost.

    The link is checked before the form, so an unknown or expired token
    reports as such whatever the submitted fields.
    """
    now = now or utcnow()
    quote = resolve_token(db, token, now=now)
    if quote.status != SENT:
        raise InvalidStatusTransition(
            f"quote is {quote.status!r}, responses are only accepted while sent",
            quote_id=quote.id,
            current=quote.status,
        )

    if response not in RESPONSE_TO_STATUS:
        raise QuoteValidationError(f"unknown response {response!r}", response=response)

    name = (name or "").strip()
    if not name:
        raise QuoteValidationError("name is required", field="name")
    if not accepted_terms:
        raise QuoteValidationError("terms must be accepted", field="accepted_terms")

    acceptance = QuoteAcceptance(
        quote_id=quote.id,
        status=response,
        name=name,
        comment=(comment or "").strip() or None,
        accepted_terms=True,
        ip=ip,
        user_agent=user_agent[:500] if user_agent else None,
        created_at=now,
    )
    db.add(acceptance)

    transition_status(db, quote, RESPONSE_TO_STATUS[response], actor=name, now=now)
    record_activity(
        db,
        QUOTE,
        quote.id,
        "client_response",
        payload={"response": response, "name": name},
        actor=name,
        now=now,
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(acceptance)

    logger.bind(quote_id=quote.id).info("quote_response_recorded", response=response)
    return acceptance
