from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from bidflow.pricing.discount import PercentDiscount
from bidflow.proposals.placeholders import Placeholder, find_tokens, unknown_tokens
from bidflow.proposals.renderer import (
    TemplateContext,
    build_context,
    format_items_table,
    render,
    render_proposal,
)


@dataclass
class Item:
    title: str
    quantity: int
    unit_price_cents: int
    sort_order: int = 0


def test_render_total_and_client_name():
    ctx = {"quote_total": "R$ 900,00", "client_name": "Acme"}

    assert render("Total: {{quote_total}} for {{client_name}}", ctx) == "Total: R$ 900,00 for Acme"


def test_recognized_tokens_leave_no_markup():
    ctx = TemplateContext(client_name="Acme", quote_title="Site", quote_total="R$ 1,00")
    body = "{{ client_name }}|{{quote_title}}|{{  quote_total  }}"

    assert render(body, ctx) == "Acme|Site|R$ 1,00"


def test_unknown_token_is_removed_and_nothing_else_changes():
    body = "Hi {{client_name}}, see {{ not_a_field }} below."

    assert render(body, TemplateContext(client_name="Acme")) == "Hi Acme, see  below."


def test_tokens_are_case_sensitive():
    assert render("{{CLIENT_NAME}}", TemplateContext(client_name="Acme")) == ""


def test_substituted_values_are_not_rescanned():
    ctx = TemplateContext(client_name="{{quote_total}}", quote_total="R$ 5,00")

    assert render("{{client_name}}", ctx) == "{{quote_total}}"


def test_every_placeholder_has_a_context_field():
    fields = set(TemplateContext().as_mapping())

    assert {p.value for p in Placeholder} == fields


def test_find_and_unknown_tokens():
    body = "{{client_name}} {{ foo }} {{foo}} {{bar_2}}"

    assert find_tokens(body) == ["client_name", "foo", "foo", "bar_2"]
    assert unknown_tokens(body) == ["foo", "bar_2"]


def test_items_table_orders_by_sort_order_and_keeps_ties_stable():
    items = [
        Item("Second", 1, 100, sort_order=2),
        Item("First A", 2, 50000, sort_order=1),
        Item("First B", 1, 10, sort_order=1),
    ]

    assert format_items_table(items).splitlines() == [
        "- First A (2 x R$ 500,00) = R$ 1.000,00",
        "- First B (1 x R$ 0,10) = R$ 0,10",
        "- Second (1 x R$ 1,00) = R$ 1,00",
    ]


def test_items_table_placeholder_line_when_empty():
    assert format_items_table([]) == "- Item principal (1 x R$ 0,00)"


def test_build_context_defaults_for_missing_entities():
    ctx = build_context(quote=None, client=None, items=[])

    assert ctx.client_name == "Cliente"
    assert ctx.client_email == "-"
    assert ctx.company_name == "bidFlow"
    assert ctx.company_address == "-"
    assert ctx.valid_until == "-"
    assert ctx.notes == ""
    assert ctx.quote_total == "R$ 0,00"


def test_render_proposal_with_discount_and_validity():
    quote = SimpleNamespace(
        id="q1",
        title="Identidade visual",
        notes="Pagamento em 2x",
        discount_policy=PercentDiscount(Decimal("10")),
        fallback_amount_cents=0,
    )
    client = SimpleNamespace(name="Acme", email="a@acme.com", phone=None)
    company = SimpleNamespace(
        company_name="Studio X",
        company_email=None,
        company_phone="11 4000-0000",
        company_address=None,
        proposal_validity_days=10,
    )
    body = (
        "{{company_name}} / {{company_phone}} / {{company_email}}\n"
        "{{client_name}} {{client_phone}}\n"
        "{{quote_subtotal}} - {{quote_discount}} = {{quote_total}}\n"
        "valid until {{valid_until}}\n{{notes}}"
    )
    now = datetime(2025, 1, 1, 12, tzinfo=timezone.utc)

    out = render_proposal(body, quote, client, [Item("Design", 2, 50000)], settings=company, now=now)

    assert out.splitlines() == [
        "Studio X / 11 4000-0000 / -",
        "Acme -",
        "R$ 1.000,00 - R$ 100,00 = R$ 900,00",
        "valid until 11/01/2025",
        "Pagamento em 2x",
    ]


def test_render_proposal_uses_default_validity_window():
    now = datetime(2025, 3, 1, tzinfo=timezone.utc)

    assert render_proposal("{{valid_until}}", None, None, [], now=now) == "15/03/2025"


def test_render_empty_body():
    assert render("", TemplateContext()) == ""
    assert render(None, TemplateContext()) == ""
