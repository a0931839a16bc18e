from decimal import Decimal

import pytest

from bidflow.core.errors import SnapshotSchemaError
from bidflow.pricing.discount import FixedAmountDiscount, PercentDiscount
from bidflow.schemas.quote import DiscountIn
from bidflow.schemas.snapshot import QuoteSnapshotV1, build_snapshot, parse_snapshot


def test_build_snapshot_copies_items_and_totals(make_quote):
    quote = make_quote(
        items=[("Design", 2, 50000), ("Revisao", 1, 10000)],
        discount=DiscountIn(type="percent", percent=Decimal("10")),
    )

    snap = build_snapshot(quote)

    assert snap.schema_version == 1
    assert snap.quote.id == quote.id
    assert [(i.title, i.quantity, i.unit_price_cents) for i in snap.items] == [
        ("Design", 2, 50000),
        ("Revisao", 1, 10000),
    ]
    assert (snap.quote.subtotal_cents, snap.quote.discount_cents, snap.quote.total_cents) == (
        110000,
        11000,
        99000,
    )
    assert snap.discount_policy == PercentDiscount(Decimal("10"))
    assert snap.recomputed_total() == 99000


def test_snapshot_json_parses_back(make_quote):
    quote = make_quote(items=[("X", 1, 100000)], discount=DiscountIn(type="fixed_amount", amount_cents=999999))

    data = build_snapshot(quote).to_json()
    parsed = parse_snapshot(data)

    assert parsed.discount_policy == FixedAmountDiscount(999999)
    assert parsed.recomputed_total() == 0


def test_snapshot_without_items_uses_recorded_fallback(make_quote):
    quote = make_quote(fallback_amount_cents=120000, discount=DiscountIn(type="percent", percent=Decimal("50")))

    assert build_snapshot(quote).recomputed_total() == 120000


def test_unknown_future_fields_are_ignored():
    data = {
        "schema_version": 1,
        "quote": {"title": "Q", "total_cents": 10, "brand_new_field": True},
        "items": [{"title": "A", "quantity": 1, "unit_price_cents": 10, "tax_code": "X"}],
        "attachments": [],
    }

    snap = parse_snapshot(data)

    assert snap.recomputed_total() == 10


def test_legacy_blob_without_schema_version_is_upgraded():
    legacy = {
        "quote": {
            "title": "Old",
            "amount_cents": 5000,
            "discount_type": "quantity",
            "discount_percent": None,
            "discount_quantity": 700,
        },
        "items": [{"title": "A", "quantity": 2, "unit_price_cents": 1000}],
    }

    snap = parse_snapshot(legacy)

    assert isinstance(snap, QuoteSnapshotV1)
    assert snap.quote.fallback_amount_cents == 5000
    assert snap.discount_policy == FixedAmountDiscount(700)
    assert snap.recomputed_total() == 1300


@pytest.mark.parametrize(
    "data",
    [
        None,
        [],
        {"items": []},
        {"schema_version": 2, "quote": {}},
        {"schema_version": 1, "quote": {"title": "Q"}, "items": [{"quantity": 1}]},
    ],
)
def test_invalid_snapshots_fail_explicitly(data):
    with pytest.raises(SnapshotSchemaError):
        parse_snapshot(data)
