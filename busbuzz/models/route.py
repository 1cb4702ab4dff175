# File: busbuzz/models/route.py

from typing import Any
from sqlalchemy import String, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column
from busbuzz.db.base import Base

class Route(Base):
    __tablename__ = "routes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, index=True)
    # stop name -> scheduled time, in boarding order
    stops: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
