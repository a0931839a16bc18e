# bidflow/facade.py
"""
Operations the core exposes to the rest of the application.

Everything here is a thin entry point over pricing, proposals and versions;
callers outside the package should not need the submodules.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Sequence

from sqlalchemy.orm import Session

from bidflow.models.quote_version import QuoteVersion
from bidflow.pricing.calculator import PricedLine, QuoteTotals, quote_total
from bidflow.pricing.discount import NO_DISCOUNT, DiscountPolicy
from bidflow.proposals import renderer
from bidflow.versions.manager import VersionManager, diff


def compute_totals(
    items: Sequence[PricedLine],
    discount_policy: Optional[DiscountPolicy] = NO_DISCOUNT,
    fallback_amount: int = 0,
) -> QuoteTotals:
    return quote_total(items, discount_policy, fallback_amount)


def render_proposal(
    template_body: str,
    quote: Any,
    client: Any,
    items: Sequence[PricedLine],
    settings: Any = None,
    now: Optional[datetime] = None,
) -> str:
    return renderer.render_proposal(template_body, quote, client, items, settings=settings, now=now)


def create_version(
    db: Session,
    quote_id: str,
    reason: Optional[str] = None,
    created_by: Optional[str] = None,
    now: Optional[datetime] = None,
) -> QuoteVersion:
    return VersionManager(db).create_version(quote_id, reason=reason, created_by=created_by, now=now)


def list_versions(db: Session, quote_id: str) -> List[QuoteVersion]:
    return VersionManager(db).list_versions(quote_id)


def diff_version(version: QuoteVersion, current_total: int) -> int:
    return diff(version, current_total)
