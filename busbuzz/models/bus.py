# File: busbuzz/models/bus.py

from enum import Enum as PyEnum
from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column
from busbuzz.db.base import Base

class BusStatus(PyEnum):
    on_route = "On Route"
    idle = "Idle"
    maintenance = "Maintenance"

class Bus(Base):
    __tablename__ = "buses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    bus_no: Mapped[str] = mapped_column(String(40), unique=True, index=True)
    route: Mapped[str] = mapped_column(String(120), index=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    driver: Mapped[str | None] = mapped_column(String(120), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=BusStatus.idle.value)
