# bidflow/repositories/settings.py
from typing import Optional

from sqlalchemy.orm import Session

from bidflow.models.company_settings import CompanySettings

_EDITABLE = {
    "company_name",
    "company_email",
    "company_phone",
    "company_address",
    "proposal_validity_days",
}


def get_company_settings(db: Session) -> Optional[CompanySettings]:
    """The single company row, or None when it was never saved."""
    return db.query(CompanySettings).order_by(CompanySettings.id.asc()).first()


def update_company_settings(db: Session, **fields) -> CompanySettings:
    unknown = set(fields) - _EDITABLE
    if unknown:
        raise TypeError(f"unknown company settings: {sorted(unknown)}")

    days = fields.get("proposal_validity_days")
    if days is not None and int(days) < 1:
        raise ValueError("proposal_validity_days must be >= 1")

    row = get_company_settings(db)
    if row is None:
        row = CompanySettings()
        db.add(row)

    for key, value in fields.items():
        setattr(row, key, value)

    db.commit()
    db.refresh(row)
    return row
