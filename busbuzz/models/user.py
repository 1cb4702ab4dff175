# File: busbuzz/models/user.py

from __future__ import annotations
from enum import Enum as PyEnum
from sqlalchemy import String, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column
from busbuzz.db.base import Base
from datetime import datetime, timezone

class UserRole(PyEnum):
    student = "student"
    admin = "admin"
    driver = "driver"

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False, default=UserRole.student)
    roll_number_or_staff_id: Mapped[str | None] = mapped_column(String(60), nullable=True)
    assigned_bus_route_no: Mapped[str | None] = mapped_column(String(120), nullable=True)
    boarding_point: Mapped[str | None] = mapped_column(String(120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
