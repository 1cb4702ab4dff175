# File: busbuzz/models/report.py
from __future__ import annotations
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any
from sqlalchemy import String, Integer, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from busbuzz.db.base import Base

class ReportKind(PyEnum):
    feedback = "Feedback"
    lost = "Lost"
    found = "Found"

class FeedbackStatus(PyEnum):
    pending = "Pending"
    in_progress = "InProgress"
    closed = "Closed"

class ClaimStatus(PyEnum):
    unclaimed = "unclaimed"
    claimed = "claimed"

class Report(Base):
    """Feedback submissions and lost/found items share this table, tagged by ``kind``.

    Nested, append-only parts (attachments, conversation) live in JSON columns
    so a report is read and written as one document.
    """
    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    author_user_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    author_name: Mapped[str | None] = mapped_column(String(120), nullable=True)

    route: Mapped[str | None] = mapped_column(String(120), index=True, nullable=True)
    bus_no: Mapped[str | None] = mapped_column(String(40), nullable=True)
    issue: Mapped[str | None] = mapped_column(String(120), nullable=True)
    item: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    attachments: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    status: Mapped[str | None] = mapped_column(String(20), index=True, nullable=True)
    submitted_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
    resolution: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    conversation: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

Index("ix_reports_submitted_on_id", Report.submitted_on, Report.id)
