# File: busbuzz/services/report_store.py
"""Persistence for reports.

Every mutation is single-document: ``insert``, ``delete`` or ``update_atomic``.
``update_atomic`` locks the row (``SELECT ... FOR UPDATE``) and also relies on
the ``version`` counter, so a writer that read an old version never commits
over a newer one; it re-reads and re-applies its mutator instead.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from busbuzz.core.errors import AppError, NotFound, StoreUnavailable
from busbuzz.models.report import Report
from busbuzz.schemas.report import ReportDoc

logger = logging.getLogger(__name__)

Mutator = Callable[[ReportDoc], ReportDoc]

# written once at insert, never by update_atomic
_IMMUTABLE = {"id", "kind", "submitted_on"}
_COLUMNS = [
    "kind", "author_user_id", "author_name", "route", "bus_no", "issue", "item",
    "description", "details", "attachments", "status", "submitted_on", "resolution",
    "conversation",
]


def _aware(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class ReportStore:
    MAX_ATTEMPTS = 3

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, operation: str, report_id: Optional[int] = None):
        try:
            yield
        except AppError:
            self.db.rollback()
            raise
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Store failure during %s (report_id=%s)", operation, report_id, exc_info=True)
            raise StoreUnavailable()

    @staticmethod
    def to_doc(row: Report) -> ReportDoc:
        data = {name: getattr(row, name) for name in _COLUMNS}
        data["id"] = row.id
        data["submitted_on"] = _aware(row.submitted_on)
        data["attachments"] = data["attachments"] or []
        data["conversation"] = data["conversation"] or []
        return ReportDoc.model_validate(data)

    @staticmethod
    def _columns_of(doc: ReportDoc) -> dict:
        dumped = doc.model_dump(mode="json")
        values = {name: dumped.get(name) for name in _COLUMNS}
        # keep the real datetime for the column; JSON mode stringified it
        values["submitted_on"] = doc.submitted_on
        return values

    def insert(self, doc: ReportDoc) -> ReportDoc:
        with self._guard("insert"):
            row = Report(**self._columns_of(doc))
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            return self.to_doc(row)

    def get(self, report_id: int) -> Optional[ReportDoc]:
        with self._guard("get", report_id):
            row = self.db.get(Report, report_id, populate_existing=True)
            return self.to_doc(row) if row else None

    def update_atomic(self, report_id: int, mutator: Mutator) -> ReportDoc:
        """Apply ``mutator`` to the current value of one report and persist the result.

        The mutator gets a detached copy and returns the new value. Raising from
        the mutator aborts the write. ``id``, ``kind`` and ``submitted_on`` are
        never written back.
        """
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            with self._guard("update", report_id):
                try:
                    row = (
                        self.db.query(Report)
                        .filter(Report.id == report_id)
                        .with_for_update()
                        .populate_existing()
                        .first()
                    )
                    if row is None:
                        raise NotFound("Report not found")
                    updated = mutator(self.to_doc(row))
                    for name, value in self._columns_of(updated).items():
                        if name not in _IMMUTABLE:
                            setattr(row, name, value)
                    self.db.commit()
                    return self.to_doc(row)
                except StaleDataError:
                    self.db.rollback()
                    logger.warning("Concurrent write on report %s, re-reading (attempt %s)", report_id, attempt)
        logger.error("Giving up on report %s after %s conflicting writes", report_id, self.MAX_ATTEMPTS)
        raise StoreUnavailable()

    def delete(self, report_id: int) -> bool:
        with self._guard("delete", report_id):
            deleted = self.db.query(Report).filter(Report.id == report_id).delete()
            self.db.commit()
            return deleted > 0

    def query(
        self,
        kind: Optional[List[str]] = None,
        status: Optional[str] = None,
        route: Optional[str] = None,
        author_user_id: Optional[int] = None,
        descending: bool = True,
    ) -> List[ReportDoc]:
        with self._guard("query"):
            q = self.db.query(Report)
            if kind:
                q = q.filter(Report.kind.in_(kind))
            if status:
                q = q.filter(Report.status == status)
            if route:
                q = q.filter(Report.route == route)
            if author_user_id is not None:
                q = q.filter(Report.author_user_id == author_user_id)
            order = Report.submitted_on.desc() if descending else Report.submitted_on.asc()
            # ties on submitted_on fall back to creation order
            return [self.to_doc(r) for r in q.order_by(order, Report.id.asc()).all()]
