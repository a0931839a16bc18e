# bidflow/versions/manager.py
from __future__ import annotations

import time
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from bidflow.core.errors import QuoteNotFound, VersionConflictError
from bidflow.core.logging_config import logger
from bidflow.core.settings import get_settings
from bidflow.infra.retry import retry_on
from bidflow.models.mixins import utcnow
from bidflow.models.quote import Quote
from bidflow.models.quote_version import QuoteVersion
from bidflow.schemas.snapshot import build_snapshot, parse_snapshot
from bidflow.services.activity import QUOTE, record_activity


# constraint name (PostgreSQL, MySQL) or column list (SQLite) in the driver message
_VERSION_UNIQUE_MARKERS = (
    "uq_quote_versions_quote_version",
    "quote_versions.quote_id, quote_versions.version",
)


def is_version_conflict(exc: Exception) -> bool:
    # duplicate (quote_id, version) from a concurrent writer; other integrity errors are real failures
    if isinstance(exc, IntegrityError):
        msg = str(exc.orig if exc.orig is not None else exc)
        return any(m in msg for m in _VERSION_UNIQUE_MARKERS)
    # SQLite writer lock held past the busy timeout
    if isinstance(exc, OperationalError):
        return "locked" in str(exc).lower()
    return False


def _clean_reason(reason: Optional[str]) -> Optional[str]:
    if reason is None:
        return None
    reason = reason.strip()
    return reason or None


def snapshot_total(version: QuoteVersion) -> int:
    """Total recomputed from the frozen items and discount, not the stored figure."""
    return parse_snapshot(version.snapshot).recomputed_total()


def diff(version: QuoteVersion, current_total: int) -> int:
    """snapshot total - current total. Positive means the quote got cheaper since."""
    return snapshot_total(version) - int(current_total)


class VersionManager:
    """
    Immutable, numbered snapshots of a quote.

    Numbers are assigned as max(existing) + 1 and guarded by the
    (quote_id, version) unique constraint. A losing concurrent writer rolls
    back and re-runs the whole read-compute-insert.
    """

    def __init__(
        self,
        db: Session,
        attempts: Optional[int] = None,
        retry_base: Optional[float] = None,
        retry_cap: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        s = get_settings()
        self.db = db
        self.attempts = attempts or s.version_create_attempts
        self.retry_base = s.version_retry_base_seconds if retry_base is None else retry_base
        self.retry_cap = s.version_retry_cap_seconds if retry_cap is None else retry_cap
        self._sleep = sleep

    def next_version_number(self, quote_id: str) -> int:
        current = self.db.scalar(
            select(func.max(QuoteVersion.version)).where(QuoteVersion.quote_id == quote_id)
        )
        return (current or 0) + 1

    def _insert_once(
        self,
        quote_id: str,
        reason: Optional[str],
        created_by: Optional[str],
        now: datetime,
    ) -> QuoteVersion:
        quote = self.db.get(Quote, quote_id)
        if quote is None:
            raise QuoteNotFound(f"quote {quote_id} not found", quote_id=quote_id)

        snapshot = build_snapshot(quote)
        row = QuoteVersion(
            quote_id=quote.id,
            version=self.next_version_number(quote.id),
            reason=reason,
            snapshot=snapshot.to_json(),
            created_by=created_by,
            created_at=now,
        )
        self.db.add(row)
        record_activity(
            self.db,
            QUOTE,
            quote.id,
            "version_created",
            payload={
                "version": row.version,
                "reason": reason,
                "total_cents": snapshot.quote.total_cents,
            },
            actor=created_by,
            now=now,
        )
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return row

    def create_version(
        self,
        quote_id: str,
        reason: Optional[str] = None,
        created_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> QuoteVersion:
        """
        Freeze the quote's current pricing state as the next version.

        Runs in its own transaction: pending changes in the session are
        committed first, so a retry never discards them.
        Raises QuoteNotFound, or VersionConflictError once every attempt lost
        a numbering race.
        """
        reason = _clean_reason(reason)
        now = now or utcnow()
        self.db.commit()

        log = logger.bind(quote_id=quote_id)

        def _on_retry(attempt: int, exc: Exception, sleep_s: float) -> None:
            log.warning(
                "version_conflict_retry",
                attempt=attempt,
                sleep_s=round(sleep_s, 3),
                error=type(exc).__name__,
            )

        try:
            row = retry_on(
                lambda: self._insert_once(quote_id, reason, created_by, now),
                attempts=self.attempts,
                base=self.retry_base,
                cap=self.retry_cap,
                is_retryable=is_version_conflict,
                on_retry=_on_retry,
                sleep=self._sleep,
            )
        except (IntegrityError, OperationalError) as e:
            if not is_version_conflict(e):
                raise
            raise VersionConflictError(
                f"could not allocate a version number for quote {quote_id} "
                f"after {self.attempts} attempts",
                quote_id=quote_id,
                attempts=self.attempts,
            ) from e

        log.info("version_created", version=row.version, reason=reason)
        return row

    def list_versions(self, quote_id: str) -> List[QuoteVersion]:
        stmt = (
            select(QuoteVersion)
            .where(QuoteVersion.quote_id == quote_id)
            .order_by(QuoteVersion.version.desc())
        )
        return list(self.db.scalars(stmt))

    def get_version(self, version_id: str) -> Optional[QuoteVersion]:
        return self.db.get(QuoteVersion, version_id)

    @staticmethod
    def snapshot_total(version: QuoteVersion) -> int:
        return snapshot_total(version)

    @staticmethod
    def diff(version: QuoteVersion, current_total: int) -> int:
        return diff(version, current_total)
