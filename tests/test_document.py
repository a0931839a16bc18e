from decimal import Decimal

import pytest

from bidflow.proposals.document import (
    build_document_data,
    proposal_filename,
    render_proposal_html,
    render_proposal_pdf,
    short_id,
)
from bidflow.repositories.settings import update_company_settings
from bidflow.schemas.quote import DiscountIn


def _weasyprint_available() -> bool:
    try:
        import weasyprint  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


def test_filename_and_short_id(make_quote):
    quote = make_quote()

    assert short_id(quote.id) == quote.id[:8]
    assert proposal_filename(quote) == f"orcamento-{quote.id[:8].lower()}.pdf"


def test_document_data_with_items(db, make_quote, make_client, fixed_now):
    company = update_company_settings(db, company_name="Studio X", proposal_validity_days=10)
    quote = make_quote(
        items=[("Design", 2, 50000)],
        discount=DiscountIn(type="percent", percent=Decimal("10")),
        client=make_client(name="Acme"),
    )

    data = build_document_data(quote, company=company, now=fixed_now)

    assert data["quote"]["short_id"] == quote.id[:8].upper()
    assert data["company"]["name"] == "Studio X"
    assert data["company"]["email"] == "-"
    assert data["client"]["name"] == "Acme"
    assert data["rows"][0]["total_cents"] == 100000
    assert data["has_discount"] is True
    assert data["totals"].total == 90000
    assert (data["valid_until"] - data["issued_at"]).days == 10


def test_document_without_items_has_single_service_row(make_quote):
    quote = make_quote(fallback_amount_cents=120000)

    data = build_document_data(quote)

    assert data["rows"] == [
        {
            "title": "Servico principal",
            "description": None,
            "quantity": 1,
            "unit_price_cents": 120000,
            "total_cents": 120000,
        }
    ]
    assert data["has_discount"] is False
    assert data["client"]["name"] == "Cliente nao informado"
    assert data["notes"].startswith("Valores validos")


def test_html_escapes_and_formats(make_quote, make_client):
    quote = make_quote(
        items=[("Design <b>bold</b>", 2, 50000)],
        discount=DiscountIn(type="fixed_amount", amount_cents=5000),
        client=make_client(name="Acme & Filhos"),
        notes="Pagamento em 2x",
    )

    html = render_proposal_html(quote)

    assert "Design &lt;b&gt;bold&lt;/b&gt;" in html
    assert "Acme &amp; Filhos" in html
    assert "R$ 1.000,00" in html
    assert "-R$ 50,00" in html
    assert "R$ 950,00" in html
    assert "Pagamento em 2x" in html
    assert f"Proposta #{quote.id[:8].upper()}" in html


@pytest.mark.skipif(not _weasyprint_available(), reason="WeasyPrint system libraries not installed")
def test_pdf_export(make_quote):
    quote = make_quote(items=[("Design", 1, 1000)])

    pdf = render_proposal_pdf(quote)

    assert pdf.startswith(b"%PDF")
