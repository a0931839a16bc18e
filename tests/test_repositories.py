from datetime import timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from bidflow.core.errors import (
    ClientNotFound,
    NotFoundError,
    QuoteNotFound,
    QuoteValidationError,
    TemplateNotFound,
)
from bidflow.models.quote import QuoteItem
from bidflow.repositories.clients import get_client, require_client
from bidflow.repositories.quotes import (
    add_item,
    create_quote,
    delete_quote,
    get_quote,
    list_quotes,
    quote_totals,
    remove_item,
    require_quote,
    set_discount,
    set_fallback_amount,
    update_item,
)
from bidflow.repositories.settings import get_company_settings, update_company_settings
from bidflow.repositories.templates import (
    apply_template,
    create_template,
    list_templates,
    require_template,
    update_template,
)
from bidflow.schemas.quote import (
    DiscountIn,
    LineItemDraft,
    LineItemUpdate,
    QuoteCreate,
    TemplateCreate,
    TemplateUpdate,
)
from bidflow.services.workflow import change_status

BODY = "Ola {{client_name}}, total {{quote_total}}"


@pytest.fixture
def template(db):
    return create_template(db, TemplateCreate(name="Padrao", body=BODY, service_type="design"))


def test_create_quote_with_items_and_defaults(db, make_quote, make_client):
    client = make_client()
    quote = make_quote(items=[("Design", 2, 50000), ("Logo", 1, 20000)], client=client)

    assert quote.status == "draft"
    assert quote.currency == "BRL"
    assert quote.client.name == "Acme"
    assert [i.position for i in quote.items] == [0, 1]
    assert quote_totals(quote).total == 120000


def test_create_quote_rejects_unknown_references(db):
    with pytest.raises(ClientNotFound):
        create_quote(db, QuoteCreate(title="X", client_id="nope"))
    with pytest.raises(TemplateNotFound):
        create_quote(db, QuoteCreate(title="X", template_id="nope"))
    assert list_quotes(db) == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"title": "  ", "quantity": 1, "unit_price_cents": 10},
        {"title": "A", "quantity": 0, "unit_price_cents": 10},
        {"title": "A", "quantity": -2, "unit_price_cents": 10},
        {"title": "A", "quantity": 1, "unit_price_cents": -1},
    ],
)
def test_invalid_line_items_never_reach_the_calculator(kwargs):
    with pytest.raises(ValidationError):
        LineItemDraft(**kwargs)


def test_add_item_appends_with_next_position(db, make_quote):
    quote = make_quote(items=[("A", 1, 100)])

    item = add_item(db, quote, LineItemDraft(title="B", quantity=3, unit_price_cents=200))

    assert item.position == 1
    assert [i.title for i in quote.items] == ["A", "B"]
    assert quote.totals.total == 700


def test_sort_order_ties_keep_insertion_order(db, make_quote):
    quote = make_quote()
    for title in ("first", "second", "third"):
        add_item(db, quote, LineItemDraft(title=title, unit_price_cents=1, sort_order=5))
    add_item(db, quote, LineItemDraft(title="top", unit_price_cents=1, sort_order=0))

    assert [i.title for i in quote.items] == ["top", "first", "second", "third"]


def test_update_and_remove_item(db, make_quote):
    quote = make_quote(items=[("A", 1, 100), ("B", 1, 100)])
    a, b = quote.items

    update_item(db, quote, a.id, LineItemUpdate(quantity=4, description="detalhe"))
    remove_item(db, quote, b.id)

    assert [(i.title, i.quantity, i.description) for i in quote.items] == [("A", 4, "detalhe")]
    assert db.query(QuoteItem).count() == 1
    with pytest.raises(NotFoundError):
        remove_item(db, quote, b.id)


def test_set_fallback_amount(db, make_quote):
    quote = make_quote()

    set_fallback_amount(db, quote, 120000)
    assert quote.totals.total == 120000

    with pytest.raises(QuoteValidationError):
        set_fallback_amount(db, quote, -1)


def test_list_and_require_quotes(db, make_quote, fixed_now):
    a = make_quote(title="A")
    b = make_quote(title="B")
    change_status(db, b, "sent", now=fixed_now)

    assert {q.id for q in list_quotes(db)} == {a.id, b.id}
    assert [q.id for q in list_quotes(db, status="sent")] == [b.id]
    assert require_quote(db, a.id) is a
    with pytest.raises(QuoteNotFound):
        require_quote(db, "missing")


def test_delete_quote_cascades_items(db, make_quote):
    quote = make_quote(items=[("A", 1, 100), ("B", 1, 100)])
    quote_id = quote.id

    delete_quote(db, quote)

    assert get_quote(db, quote_id) is None
    assert db.query(QuoteItem).count() == 0


def test_apply_template_freezes_rendered_text(db, make_quote, make_client, template):
    quote = make_quote(items=[("Design", 2, 50000)], client=make_client(name="Acme"))

    apply_template(db, quote, template)

    assert quote.template_id == template.id
    assert quote.template_snapshot == "Ola Acme, total R$ 1.000,00"

    update_template(db, template.id, TemplateUpdate(body="Novo texto {{quote_title}}"))
    db.refresh(quote)
    assert quote.template_snapshot == "Ola Acme, total R$ 1.000,00"


def test_pricing_changes_rerender_attached_template(db, make_quote, make_client, template):
    quote = make_quote(items=[("Design", 2, 50000)], client=make_client(name="Acme"))
    apply_template(db, quote, template)

    set_discount(db, quote, DiscountIn(type="percent", percent=Decimal("10")))
    assert quote.template_snapshot == "Ola Acme, total R$ 900,00"

    add_item(db, quote, LineItemDraft(title="Extra", unit_price_cents=10000))
    assert quote.template_snapshot == "Ola Acme, total R$ 990,00"


def test_reapplying_picks_up_template_edits(db, make_quote, template):
    quote = make_quote(items=[("Design", 1, 100)])
    apply_template(db, quote, template)

    update_template(db, template.id, TemplateUpdate(body="{{quote_title}}"))
    apply_template(db, quote, require_template(db, template.id))

    assert quote.template_snapshot == quote.title


def test_create_quote_with_template(db, make_quote, template):
    quote = make_quote(items=[("A", 1, 5000)], template_id=template.id)

    assert quote.template_snapshot == "Ola Cliente, total R$ 50,00"


def test_list_templates_filters(db, template):
    create_template(db, TemplateCreate(name="Antigo", body="x", service_type="design", is_active=False))
    create_template(db, TemplateCreate(name="Obra", body="y", service_type="reforma"))

    assert [t.name for t in list_templates(db)] == ["Antigo", "Obra", "Padrao"]
    assert [t.name for t in list_templates(db, active_only=True)] == ["Obra", "Padrao"]
    assert [t.name for t in list_templates(db, active_only=True, service_type="design")] == ["Padrao"]


def test_client_lookup(db, make_client):
    client = make_client(name="Beta")

    assert get_client(db, client.id).name == "Beta"
    assert get_client(db, "missing") is None
    with pytest.raises(ClientNotFound):
        require_client(db, "missing")


def test_company_settings_single_row(db):
    assert get_company_settings(db) is None

    update_company_settings(db, company_name="Studio X")
    row = update_company_settings(db, company_email="oi@studiox.com.br", proposal_validity_days=7)

    assert row.company_name == "Studio X"
    assert row.company_email == "oi@studiox.com.br"
    assert get_company_settings(db).id == row.id

    with pytest.raises(ValueError):
        update_company_settings(db, proposal_validity_days=0)
    with pytest.raises(TypeError):
        update_company_settings(db, logo_url="x")


def test_rerender_uses_company_block(db, make_quote, fixed_now):
    update_company_settings(db, company_name="Studio X", proposal_validity_days=5)
    tpl = create_template(db, TemplateCreate(name="T", body="{{company_name}} ate {{valid_until}}"))
    quote = make_quote(items=[("A", 1, 100)])

    apply_template(db, quote, tpl, now=fixed_now + timedelta(days=1))

    assert quote.template_snapshot == "Studio X ate 07/01/2025"


def test_removing_last_item_switches_to_fallback_amount(db, make_quote):
    tpl = create_template(db, TemplateCreate(name="Total", body="total {{quote_total}}"))
    quote = make_quote(
        items=[("Design", 1, 50000)],
        discount=DiscountIn(type="percent", percent=Decimal("10")),
        fallback_amount_cents=77700,
    )
    apply_template(db, quote, tpl)
    assert quote_totals(quote).as_dict() == {"subtotal": 50000, "discount": 5000, "total": 45000}
    assert quote.template_snapshot == "total R$ 450,00"

    remove_item(db, quote, quote.items[0].id)

    # the discount only applies to itemized quotes
    assert quote_totals(quote).as_dict() == {"subtotal": 0, "discount": 0, "total": 77700}
    assert quote.template_snapshot == "total R$ 777,00"
    db.refresh(quote)
    assert quote.items == []
    assert quote.template_snapshot == "total R$ 777,00"
