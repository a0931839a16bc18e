from .quote import (
    ClientCreate,
    DiscountIn,
    LineItemDraft,
    LineItemUpdate,
    QuoteCreate,
    TemplateCreate,
    TemplateUpdate,
)
from .snapshot import QuoteSnapshotV1, SnapshotItem, SnapshotQuote, build_snapshot, parse_snapshot

__all__ = [
    "ClientCreate",
    "DiscountIn",
    "LineItemDraft",
    "LineItemUpdate",
    "QuoteCreate",
    "TemplateCreate",
    "TemplateUpdate",
    "QuoteSnapshotV1",
    "SnapshotItem",
    "SnapshotQuote",
    "build_snapshot",
    "parse_snapshot",
]
