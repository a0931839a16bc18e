from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from bidflow.db import Base
from bidflow.models.append_only import append_only
from bidflow.models.mixins import new_id, utcnow


class ActivityEntry(Base):
    __tablename__ = "activity_log"
    __table_args__ = (
        Index("idx_activity_entity_time", "entity_type", "entity_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    actor: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ActivityEntry {self.entity_type}:{self.entity_id} {self.action}>"


append_only(
    ActivityEntry,
    frozen_columns=("id", "entity_type", "entity_id", "action", "payload", "actor", "created_at"),
)
