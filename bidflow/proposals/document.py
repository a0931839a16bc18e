from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from bidflow.core.logging_config import logger
from bidflow.core.settings import get_settings
from bidflow.models.mixins import as_utc, utcnow
from bidflow.pricing.money import format_currency
from bidflow.proposals.renderer import ordered_items, format_date, valid_until_from

# Structure:
# bidflow/
#   proposals/document.py  (this file)
#   templates/proposal.html
TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)
_env.filters["money"] = format_currency
_env.filters["date"] = format_date


def short_id(quote_id: str) -> str:
    return (quote_id or "")[:8]


def proposal_filename(quote: Any) -> str:
    return f"orcamento-{short_id(quote.id).lower()}.pdf"


def _company_block(company: Any) -> Dict[str, str]:
    s = get_settings()

    def pick(attr: str, default: Optional[str]) -> str:
        v = getattr(company, attr, None) if company is not None else None
        return v or default or "-"

    return {
        "name": pick("company_name", s.company_name),
        "email": pick("company_email", s.company_email),
        "phone": pick("company_phone", s.company_phone),
        "address": pick("company_address", s.company_address),
    }


def build_document_data(quote: Any, client: Any = None, company: Any = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    s = get_settings()
    totals = quote.totals
    issued_at = as_utc(getattr(quote, "created_at", None)) or (now or utcnow())

    items = quote.items
    if items:
        rows = [
            {
                "title": i.title,
                "description": i.description,
                "quantity": i.quantity,
                "unit_price_cents": i.unit_price_cents,
                "total_cents": i.quantity * i.unit_price_cents,
            }
            for i in ordered_items(items)
        ]
    else:
        rows = [
            {
                "title": "Servico principal",
                "description": None,
                "quantity": 1,
                "unit_price_cents": totals.total,
                "total_cents": totals.total,
            }
        ]

    client = client if client is not None else getattr(quote, "client", None)

    return {
        "company": _company_block(company),
        "quote": {
            "id": quote.id,
            "short_id": short_id(quote.id).upper(),
            "title": quote.title,
            "status": quote.status,
        },
        "issued_at": issued_at,
        "valid_until": valid_until_from(issued_at, company),
        "client": {
            "name": getattr(client, "name", None) or "Cliente nao informado",
            "email": getattr(client, "email", None) or "-",
            "phone": getattr(client, "phone", None) or "-",
        },
        "rows": rows,
        "totals": totals,
        "has_discount": bool(items) and totals.discount > 0,
        "notes": quote.notes or s.default_notes,
        "template_snapshot": quote.template_snapshot,
    }


def render_proposal_html(quote: Any, client: Any = None, company: Any = None, now: Optional[datetime] = None) -> str:
    """Printable proposal with live totals (never a stored version)."""
    template = _env.get_template("proposal.html")
    return template.render(**build_document_data(quote, client, company, now))


def render_proposal_pdf(quote: Any, client: Any = None, company: Any = None, now: Optional[datetime] = None) -> bytes:
    """
    Same document as render_proposal_html, converted with WeasyPrint.
    WeasyPrint needs pango at runtime, so it is only imported here.
    """
    from weasyprint import CSS, HTML
    from weasyprint.text.fonts import FontConfiguration

    html = render_proposal_html(quote, client, company, now)
    font_config = FontConfiguration()
    css = CSS(
        string="""
            @page { size: A4; margin: 2cm; }
            body { font-family: 'Helvetica', 'Arial', sans-serif; }
            .section { page-break-inside: avoid; }
        """,
        font_config=font_config,
    )
    pdf_bytes = HTML(string=html).write_pdf(stylesheets=[css], font_config=font_config)
    logger.bind(quote_id=quote.id).info("proposal_pdf_rendered", size_bytes=len(pdf_bytes))
    return pdf_bytes
