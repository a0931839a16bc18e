# bidflow/models/quote_version.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bidflow.db import Base
from bidflow.models.append_only import append_only
from bidflow.models.mixins import new_id, utcnow


class QuoteVersion(Base):
    """
    Frozen, numbered copy of a quote's pricing state.
    Insert-only; quote_id is a weak reference (SET NULL when the quote goes).
    """

    __tablename__ = "quote_versions"
    __table_args__ = (
        UniqueConstraint("quote_id", "version", name="uq_quote_versions_quote_version"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    quote_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("quotes.id", ondelete="SET NULL"), index=True, nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    snapshot: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    @property
    def snapshot_model(self):
        from bidflow.schemas.snapshot import parse_snapshot

        return parse_snapshot(self.snapshot)

    def __repr__(self) -> str:
        return f"<QuoteVersion quote_id={self.quote_id} v{self.version}>"


append_only(
    QuoteVersion,
    frozen_columns=("id", "version", "reason", "snapshot", "created_by", "created_at"),
)
