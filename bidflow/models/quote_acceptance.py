from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bidflow.db import Base
from bidflow.models.mixins import new_id, utcnow


class QuoteAcceptance(Base):
    __tablename__ = "quote_acceptances"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    quote_id: Mapped[str] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"), index=True, nullable=False
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False)  # accepted | declined
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    accepted_terms: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
