# bidflow/services/workflow.py
from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional

from sqlalchemy.orm import Session

from bidflow.core.errors import InvalidStatusTransition, ShareLinkUnavailable
from bidflow.core.logging_config import logger
from bidflow.core.settings import get_settings
from bidflow.models.mixins import utcnow
from bidflow.models.quote import Quote
from bidflow.proposals.renderer import validity_days
from bidflow.repositories.settings import get_company_settings
from bidflow.services.activity import QUOTE, record_activity

DRAFT = "draft"
SENT = "sent"
APPROVED = "approved"
LOST = "lost"

STATUSES = (DRAFT, SENT, APPROVED, LOST)

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    DRAFT: frozenset({SENT, LOST}),
    SENT: frozenset({APPROVED, LOST}),
    APPROVED: frozenset(),
    LOST: frozenset(),
}


def can_transition(current: str, new_status: str) -> bool:
    if current == new_status:
        return True
    return new_status in ALLOWED_TRANSITIONS.get(current, frozenset())


def _issue_share_link(db: Session, quote: Quote, now: datetime) -> None:
    quote.public_token = secrets.token_hex(16)
    quote.public_expires_at = now + timedelta(days=validity_days(get_company_settings(db)))


def transition_status(
    db: Session,
    quote: Quote,
    new_status: str,
    actor: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Quote:
    """
    draft -> sent | lost, sent -> approved | lost.
    Same status again is a no-op; anything else raises InvalidStatusTransition.
    Entering "sent" stamps sent_at and issues a fresh share link.
    Does not commit.
    """
    current = quote.status or DRAFT
    if new_status not in STATUSES or not can_transition(current, new_status):
        raise InvalidStatusTransition(
            f"cannot move quote from {current!r} to {new_status!r}",
            quote_id=quote.id,
            current=current,
            requested=new_status,
        )
    if current == new_status:
        return quote

    now = now or utcnow()
    quote.status = new_status
    if new_status == SENT:
        quote.sent_at = now
        _issue_share_link(db, quote, now)

    db.add(quote)
    record_activity(
        db,
        QUOTE,
        quote.id,
        "status_changed",
        payload={"from": current, "to": new_status},
        actor=actor,
        now=now,
    )
    logger.bind(quote_id=quote.id).info("quote_status_changed", old=current, new=new_status)
    return quote


def change_status(
    db: Session,
    quote: Quote,
    new_status: str,
    actor: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Quote:
    """transition_status + commit."""
    transition_status(db, quote, new_status, actor=actor, now=now)
    db.commit()
    db.refresh(quote)
    return quote


def ensure_share_link(db: Session, quote: Quote, now: Optional[datetime] = None) -> Quote:
    """Regenerate token and expiry. Only a sent quote can be shared."""
    if quote.status != SENT:
        raise ShareLinkUnavailable(
            "share links exist only for sent quotes", quote_id=quote.id, status=quote.status
        )
    _issue_share_link(db, quote, now or utcnow())
    db.commit()
    db.refresh(quote)
    return quote


def public_url(quote: Quote) -> Optional[str]:
    if not quote.public_token:
        return None
    base = get_settings().PUBLIC_BASE_URL.rstrip("/")
    return f"{base}/proposta/{quote.public_token}"
