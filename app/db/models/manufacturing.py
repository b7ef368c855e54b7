"""
Bills of materials and production orders.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Date, Integer, Numeric, ForeignKey, Boolean, Index, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.models.common import HasId, HasCreatedAt, HasUpdatedAt
from app.db.models.catalog import Product, WorkCenter

# ============= BILL OF MATERIALS (BOM) =============
class BillOfMaterials(Base, HasId, HasCreatedAt, HasUpdatedAt):
    __tablename__ = "bill_of_materials"
    __table_args__ = (UniqueConstraint("product_id", "version", name="uq_bom_product_version"),)

    product_id: Mapped[str] = mapped_column(ForeignKey("product.id"), nullable=False, index=True)
    version: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    manufacturing_type: Mapped[str] = mapped_column(String(16), default="Discrete", nullable=False)  # Discrete|Process|Repetitive|Batch|Lean|Custom
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    revision_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    yield_percentage: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=100, nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0, nullable=False)  # sum of item costs, refreshed on item changes

    # Approval
    approved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    approval_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    product: Mapped[Product] = relationship()
    items: Mapped[list["BOMItem"]] = relationship(
        back_populates="bom", order_by="BOMItem.position", cascade="all, delete-orphan"
    )


class BOMItem(Base, HasId, HasCreatedAt):
    __tablename__ = "bom_item"

    bom_id: Mapped[str] = mapped_column(ForeignKey("bill_of_materials.id"), nullable=False, index=True)
    component_id: Mapped[str] = mapped_column(ForeignKey("product.id"), nullable=False, index=True)

    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(String(32), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    is_optional: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_sub_assembly: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    scrap_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=0, nullable=False)  # percent, not applied to cost/consumption

    operation: Mapped[str | None] = mapped_column(String(128), nullable=True)
    work_center_id: Mapped[str | None] = mapped_column(ForeignKey("work_center.id"), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    bom: Mapped[BillOfMaterials] = relationship(back_populates="items")
    component: Mapped[Product] = relationship()
    work_center: Mapped[WorkCenter | None] = relationship()

Index("ix_bom_item_bom_position", BOMItem.bom_id, BOMItem.position)

# ============= PRODUCTION ORDERS =============
class ProductionOrder(Base, HasId, HasCreatedAt, HasUpdatedAt):
    __tablename__ = "production_order"

    order_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    bom_id: Mapped[str] = mapped_column(ForeignKey("bill_of_materials.id"), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("product.id"), nullable=False, index=True)

    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    completed_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=0, nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(String(32), default="Each", nullable=False)

    # Schedule
    planned_start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    planned_end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    actual_start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    status: Mapped[str] = mapped_column(String(16), default="Planned", nullable=False)  # Planned|In Progress|Completed|On Hold|Cancelled
    priority: Mapped[str] = mapped_column(String(16), default="Normal", nullable=False)  # Low|Normal|Medium|High|Urgent
    reference: Mapped[str | None] = mapped_column(String(128), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    bom: Mapped[BillOfMaterials] = relationship()
    product: Mapped[Product] = relationship()
    operations: Mapped[list["ProductionOrderOperation"]] = relationship(
        back_populates="production_order", order_by="ProductionOrderOperation.sequence", cascade="all, delete-orphan"
    )
    material_consumptions: Mapped[list["MaterialConsumption"]] = relationship(
        back_populates="production_order", cascade="all, delete-orphan"
    )


class ProductionOrderOperation(Base, HasId, HasCreatedAt):
    __tablename__ = "production_order_operation"

    production_order_id: Mapped[str] = mapped_column(ForeignKey("production_order.id"), nullable=False, index=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    work_center_id: Mapped[str] = mapped_column(ForeignKey("work_center.id"), nullable=False, index=True)

    planned_duration: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)  # hours
    actual_duration: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    status: Mapped[str] = mapped_column(String(16), default="Not Started", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    production_order: Mapped[ProductionOrder] = relationship(back_populates="operations")
    work_center: Mapped[WorkCenter] = relationship()

Index("ix_po_op_po_seq", ProductionOrderOperation.production_order_id, ProductionOrderOperation.sequence)


class MaterialConsumption(Base, HasId, HasCreatedAt):
    __tablename__ = "material_consumption"

    production_order_id: Mapped[str] = mapped_column(ForeignKey("production_order.id"), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("product.id"), nullable=False, index=True)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    required_quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    consumed_quantity: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    unit_of_measure: Mapped[str] = mapped_column(String(32), nullable=False)

    status: Mapped[str] = mapped_column(String(16), default="Pending", nullable=False)  # Pending|Issued|Consumed|Cancelled

    production_order: Mapped[ProductionOrder] = relationship(back_populates="material_consumptions")
    product: Mapped[Product] = relationship()

Index("ix_mat_cons_po_line", MaterialConsumption.production_order_id, MaterialConsumption.line_number)

# ============= QUALITY =============
class QualityInspection(Base, HasId, HasCreatedAt):
    __tablename__ = "quality_inspection"

    reference_type: Mapped[str] = mapped_column(String(32), nullable=False)  # production_order
    reference_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("product.id"), nullable=False)

    result: Mapped[str] = mapped_column(String(16), nullable=False)  # Pass|Fail|PendingReview|Acceptable|Rework
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 6), nullable=False)
    quantity_passed: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    quantity_failed: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    inspected_by: Mapped[str | None] = mapped_column(String(128), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

Index("ix_qi_reference", QualityInspection.reference_type, QualityInspection.reference_id)
