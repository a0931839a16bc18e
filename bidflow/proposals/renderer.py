from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta
from typing import Any, Mapping, Optional, Sequence, Union

from bidflow.core.settings import get_settings
from bidflow.models.mixins import utcnow
from bidflow.pricing.calculator import PricedLine, QuoteTotals, line_total, quote_total
from bidflow.pricing.discount import NO_DISCOUNT, DiscountPolicy
from bidflow.pricing.money import format_currency
from bidflow.proposals.placeholders import TOKEN_RE, Placeholder

EMPTY_ITEMS_LINE_TITLE = "Item principal"
DEFAULT_CLIENT_NAME = "Cliente"
MISSING = "-"


@dataclass(frozen=True)
class TemplateContext:
    """Formatted string value per placeholder. Built once, rendered many times."""

    client_name: str = DEFAULT_CLIENT_NAME
    client_email: str = MISSING
    client_phone: str = MISSING
    company_name: str = "bidFlow"
    company_email: str = MISSING
    company_phone: str = MISSING
    company_address: str = MISSING
    quote_title: str = ""
    quote_id: str = ""
    quote_total: str = ""
    quote_subtotal: str = ""
    quote_discount: str = ""
    valid_until: str = MISSING
    items_table: str = ""
    notes: str = ""

    def as_mapping(self) -> Mapping[str, str]:
        return asdict(self)


def render(body: str, context: Union[TemplateContext, Mapping[str, Any]]) -> str:
    """
    Replace every {{ token }} in body in a single pass.

    - recognized token -> its value from context
    - unknown token (not a Placeholder) -> ''
    - substituted values are never scanned again
    """
    values = context.as_mapping() if isinstance(context, TemplateContext) else context

    def _sub(m) -> str:
        ph = Placeholder.lookup(m.group(1))
        if ph is None:
            return ""
        v = values.get(ph.value)
        return "" if v is None else str(v)

    return TOKEN_RE.sub(_sub, body or "")


def ordered_items(items: Sequence[PricedLine]) -> list:
    # sorted() is stable: equal sort_order keeps insertion order
    return sorted(items, key=lambda i: getattr(i, "sort_order", 0) or 0)


def format_items_table(items: Sequence[PricedLine]) -> str:
    if not items:
        return f"- {EMPTY_ITEMS_LINE_TITLE} (1 x {format_currency(0)})"

    lines = []
    for item in ordered_items(items):
        lines.append(
            f"- {item.title} ({item.quantity} x {format_currency(item.unit_price_cents)})"
            f" = {format_currency(line_total(item))}"
        )
    return "\n".join(lines)


def format_date(value: Union[date, datetime, str, None]) -> str:
    if value is None:
        return MISSING
    if isinstance(value, str):
        return value or MISSING
    return value.strftime(get_settings().date_format)


def validity_days(company: Any = None) -> int:
    days = getattr(company, "proposal_validity_days", None)
    return int(days) if days else get_settings().proposal_validity_days


def valid_until_from(now: Optional[datetime], company: Any = None) -> datetime:
    return (now or utcnow()) + timedelta(days=validity_days(company))


def _text(obj: Any, attr: str, default: str) -> str:
    v = getattr(obj, attr, None) if obj is not None else None
    return v if v else default


def _policy_of(quote: Any) -> DiscountPolicy:
    policy = getattr(quote, "discount_policy", None)
    if policy is not None:
        return policy
    discount = getattr(quote, "discount", None)
    if discount is not None and hasattr(discount, "to_policy"):
        return discount.to_policy()
    return NO_DISCOUNT


def build_context(
    quote: Any,
    client: Any,
    items: Sequence[PricedLine],
    company: Any = None,
    valid_until: Union[date, datetime, str, None] = None,
    totals: Optional[QuoteTotals] = None,
) -> TemplateContext:
    """
    quote/client/company can be ORM rows, schemas or anything with the
    right attributes; missing values fall back to display defaults.
    """
    s = get_settings()
    if totals is None:
        totals = quote_total(
            items, _policy_of(quote), getattr(quote, "fallback_amount_cents", 0)
        )

    return TemplateContext(
        client_name=_text(client, "name", DEFAULT_CLIENT_NAME),
        client_email=_text(client, "email", MISSING),
        client_phone=_text(client, "phone", MISSING),
        company_name=_text(company, "company_name", s.company_name or "bidFlow"),
        company_email=_text(company, "company_email", s.company_email or MISSING),
        company_phone=_text(company, "company_phone", s.company_phone or MISSING),
        company_address=_text(company, "company_address", s.company_address or MISSING),
        quote_title=_text(quote, "title", ""),
        quote_id=str(getattr(quote, "id", "") or ""),
        quote_total=format_currency(totals.total),
        quote_subtotal=format_currency(totals.subtotal),
        quote_discount=format_currency(totals.discount),
        valid_until=format_date(valid_until),
        items_table=format_items_table(items),
        notes=_text(quote, "notes", ""),
    )


def render_proposal(
    template_body: str,
    quote: Any,
    client: Any,
    items: Sequence[PricedLine],
    settings: Any = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Render a proposal body for a quote. valid_until is now + the company's
    validity window. The result is meant to be stored as a frozen snapshot.
    """
    ctx = build_context(
        quote,
        client,
        items,
        company=settings,
        valid_until=valid_until_from(now, settings),
    )
    return render(template_body, ctx)
