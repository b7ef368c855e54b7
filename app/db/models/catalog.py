"""
Catalog master data referenced by manufacturing: products (with their list
price, used as component unit cost) and work centers.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import String, Numeric, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.db.models.common import HasId, HasCreatedAt, HasUpdatedAt


class Product(Base, HasId, HasCreatedAt, HasUpdatedAt):
    __tablename__ = "product"

    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0, nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(String(32), default="Each", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class WorkCenter(Base, HasId, HasCreatedAt, HasUpdatedAt):
    __tablename__ = "work_center"

    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    capacity: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)  # hours per day
    status: Mapped[str] = mapped_column(String(24), default="Active", nullable=False)  # Active|Inactive|AtCapacity|UnderMaintenance
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
