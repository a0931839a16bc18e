# bidflow/models/company_settings.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bidflow.db import Base
from bidflow.models.mixins import TimestampMixin


class CompanySettings(TimestampMixin, Base):
    """Single row with the company block printed on proposals."""

    __tablename__ = "company_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    company_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    company_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    company_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    company_address: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    proposal_validity_days: Mapped[int] = mapped_column(Integer, nullable=False, default=14)
