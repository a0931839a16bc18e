from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import bidflow.models  # noqa: F401 (register all tables on Base)

from bidflow.db import Base, make_engine
from bidflow.repositories.clients import create_client
from bidflow.repositories.quotes import create_quote
from bidflow.schemas.quote import ClientCreate, DiscountIn, LineItemDraft, QuoteCreate


@pytest.fixture
def fixed_now():
    return datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    # one in-memory database per test; StaticPool keeps the single connection alive
    eng = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def make_client(db):
    def _make(name="Acme", email="contato@acme.com.br", phone="11 99999-0000"):
        return create_client(db, ClientCreate(name=name, email=email, phone=phone))

    return _make


@pytest.fixture
def make_quote(db, fixed_now):
    def _make(
        title="Reforma escritorio",
        items=(),
        discount=None,
        fallback_amount_cents=0,
        client=None,
        template_id=None,
        notes=None,
    ):
        data = QuoteCreate(
            title=title,
            client_id=client.id if client is not None else None,
            items=[
                LineItemDraft(title=t, quantity=q, unit_price_cents=p, sort_order=n)
                for n, (t, q, p) in enumerate(items)
            ],
            discount=discount or DiscountIn(),
            fallback_amount_cents=fallback_amount_cents,
            template_id=template_id,
            notes=notes,
        )
        return create_quote(db, data, now=fixed_now)

    return _make
