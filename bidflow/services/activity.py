# bidflow/services/activity.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from bidflow.models.activity import ActivityEntry
from bidflow.models.mixins import utcnow

QUOTE = "quote"


def record_activity(
    db: Session,
    entity_type: str,
    entity_id: str,
    action: str,
    payload: Optional[Dict[str, Any]] = None,
    actor: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ActivityEntry:
    """Append an entry. Added to the session only; the caller owns the commit."""
    entry = ActivityEntry(
        entity_type=entity_type,
        entity_id=str(entity_id),
        action=action,
        payload=dict(payload or {}),
        actor=actor,
        created_at=now or utcnow(),
    )
    db.add(entry)
    return entry


def list_activity(db: Session, entity_type: str, entity_id: str) -> List[ActivityEntry]:
    stmt = (
        select(ActivityEntry)
        .where(
            ActivityEntry.entity_type == entity_type,
            ActivityEntry.entity_id == str(entity_id),
        )
        .order_by(ActivityEntry.created_at.desc())
    )
    return list(db.scalars(stmt))
