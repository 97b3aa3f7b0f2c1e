"""Quotation edit lock: a lease renewed by heartbeat.

Liveness is a timestamp comparison (``expires_at > now``) made on every read;
there is no background sweep. Each operation is a single conditional statement
on the ``quotation_locks`` row, so two callers racing for the same quotation
cannot both come out holding it.

The lock is advisory. Nothing here gates writes to the quotation itself.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import and_, case, delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..shared.config import settings
from ..shared.db import utcnow
from ..shared.logging import get_logger
from .models import QuotationLock

log = get_logger(__name__)


class LockError(Exception):
    pass


class LockConflict(LockError):
    """Another holder's lease is live."""

    def __init__(self, quotation_id: int, holder_id: str, holder_name: str):
        super().__init__(f"quotation {quotation_id} is locked by {holder_name}")
        self.quotation_id = quotation_id
        self.holder_id = holder_id
        self.holder_name = holder_name


class LockLost(LockError):
    """Heartbeat for a lease that expired or was taken over."""

    def __init__(self, quotation_id: int, holder_id: str):
        super().__init__(f"lock on quotation {quotation_id} no longer held by {holder_id}")
        self.quotation_id = quotation_id
        self.holder_id = holder_id


@dataclass(frozen=True)
class LockView:
    quotation_id: int
    holder_id: str
    holder_name: str
    acquired_at: datetime
    renewed_at: datetime
    expires_at: datetime

    @classmethod
    def from_row(cls, row: QuotationLock) -> "LockView":
        return cls(
            quotation_id=row.quotation_id,
            holder_id=row.holder_id,
            holder_name=row.holder_name,
            acquired_at=row.acquired_at,
            renewed_at=row.renewed_at,
            expires_at=row.expires_at,
        )

    def remaining_sec(self, now: datetime) -> int:
        return max(int((self.expires_at - now).total_seconds()), 0)


class QuotationLockManager:
    def __init__(
        self,
        db: Session,
        lease_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.lease = timedelta(seconds=lease_seconds or settings.LOCK_LEASE_SECONDS)
        self.clock = clock

    def _load(self, quotation_id: int) -> Optional[QuotationLock]:
        # statements below bypass the identity map; always re-read the row
        return self.db.get(QuotationLock, quotation_id, populate_existing=True)

    def acquire(self, quotation_id: int, holder_id: str, holder_name: str, _retry: bool = True) -> LockView:
        now = self.clock()
        live_mine = and_(QuotationLock.holder_id == holder_id, QuotationLock.expires_at > now)
        try:
            # take over an expired row, or renew our own live one (keeping acquired_at)
            res = self.db.execute(
                update(QuotationLock)
                .where(
                    QuotationLock.quotation_id == quotation_id,
                    or_(QuotationLock.expires_at <= now, QuotationLock.holder_id == holder_id),
                )
                .values(
                    holder_id=holder_id,
                    holder_name=holder_name,
                    acquired_at=case((live_mine, QuotationLock.acquired_at), else_=now),
                    renewed_at=now,
                    expires_at=now + self.lease,
                )
                .execution_options(synchronize_session=False)
            )
            if res.rowcount == 0:
                cur = self._load(quotation_id)
                if cur is not None:
                    holder_id_live, holder_name_live = cur.holder_id, cur.holder_name
                    self.db.rollback()
                    raise LockConflict(quotation_id, holder_id_live, holder_name_live)
                self.db.execute(
                    insert(QuotationLock).values(
                        quotation_id=quotation_id,
                        holder_id=holder_id,
                        holder_name=holder_name,
                        acquired_at=now,
                        renewed_at=now,
                        expires_at=now + self.lease,
                    )
                )
            self.db.commit()
        except IntegrityError:
            # someone inserted the row between our update and insert
            self.db.rollback()
            if not _retry:
                raise
            return self.acquire(quotation_id, holder_id, holder_name, _retry=False)

        view = LockView.from_row(self._load(quotation_id))
        log.debug("lock q=%s held by %s until %s", quotation_id, holder_id, view.expires_at)
        return view

    def heartbeat(self, quotation_id: int, holder_id: str) -> LockView:
        now = self.clock()
        res = self.db.execute(
            update(QuotationLock)
            .where(
                QuotationLock.quotation_id == quotation_id,
                QuotationLock.holder_id == holder_id,
                QuotationLock.expires_at > now,
            )
            .values(renewed_at=now, expires_at=now + self.lease)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount == 0:
            self.db.rollback()
            raise LockLost(quotation_id, holder_id)
        self.db.commit()
        return LockView.from_row(self._load(quotation_id))

    def release(self, quotation_id: int, holder_id: str) -> bool:
        """Drop the caller's live lease. Anyone else's lease is left alone."""
        now = self.clock()
        res = self.db.execute(
            delete(QuotationLock)
            .where(
                QuotationLock.quotation_id == quotation_id,
                QuotationLock.holder_id == holder_id,
                QuotationLock.expires_at > now,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return res.rowcount > 0

    def status(self, quotation_id: int) -> Optional[LockView]:
        row = self.db.scalar(
            select(QuotationLock).where(
                QuotationLock.quotation_id == quotation_id,
                QuotationLock.expires_at > self.clock(),
            )
        )
        return LockView.from_row(row) if row else None

    def force_release(self, quotation_id: int) -> Optional[LockView]:
        """Remove any row for the quotation, live or expired. Returns what was removed."""
        row = self._load(quotation_id)
        if row is None:
            return None
        view = LockView.from_row(row)
        self.db.delete(row)
        self.db.flush()
        return view
