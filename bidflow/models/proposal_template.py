from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from bidflow.db import Base
from bidflow.models.mixins import TimestampMixin, new_id


class ProposalTemplate(TimestampMixin, Base):
    __tablename__ = "proposal_templates"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    service_type: Mapped[Optional[str]] = mapped_column(String(100), index=True, nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<ProposalTemplate id={self.id} name={self.name!r} active={self.is_active}>"
