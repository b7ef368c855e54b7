from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session, selectinload

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.db.models.catalog import Product, WorkCenter
from app.db.models.manufacturing import BillOfMaterials, MaterialConsumption, ProductionOrder, ProductionOrderOperation, QualityInspection
from app.events.bus import publish
from services._crud import apply_changes, plain, unit_of_work
from services.manufacturing.bom_service import load_bom_snapshot
from services.manufacturing.planner import MaterialLine, MaterialPlanner, OrderDraft, as_utc, to_quantity, validate_order_submission
from services.manufacturing.schemas import (
    CreateProductionOrderResult,
    MaterialConsumptionResult,
    MaterialLineResult,
    MaterialPreviewResult,
    OperationResult,
    ProductionOrderDetailResult,
    ProductionOrderIn,
    ProductionOrderSummary,
    QualityInspectionIn,
    QualityInspectionResult,
)

logger = logging.getLogger(__name__)

DUPLICATE_ORDER_NUMBER = "A production order with this order number already exists"


def _generate_order_number() -> str:
    return f"PO-{str(uuid.uuid4())[:8].upper()}"


def _get_order(db: Session, order_id: str) -> ProductionOrder:
    po = (
        db.query(ProductionOrder)
        .options(selectinload(ProductionOrder.operations), selectinload(ProductionOrder.material_consumptions))
        .filter(ProductionOrder.id == order_id)
        .first()
    )
    if not po:
        raise NotFoundError("Production order not found", field="id", extra={"production_order_id": order_id})
    return po


def _planner_for(db: Session, bom_id: str, quantity: Decimal) -> MaterialPlanner:
    planner = MaterialPlanner(lambda bid: load_bom_snapshot(db, bid), quantity=quantity)
    try:
        planner.select_bom(bom_id)
    except NotFoundError:
        raise ValidationError("BOM not found", field="bom_id") from None
    return planner


def _summary_fields(po: ProductionOrder) -> dict:
    return dict(
        id=po.id,
        order_number=po.order_number,
        bom_id=po.bom_id,
        product_id=po.product_id,
        quantity=po.quantity,
        completed_quantity=po.completed_quantity,
        unit_of_measure=po.unit_of_measure,
        planned_start_date=po.planned_start_date,
        planned_end_date=po.planned_end_date,
        actual_start_date=po.actual_start_date,
        actual_end_date=po.actual_end_date,
        status=po.status,
        priority=po.priority,
        reference=po.reference,
        notes=po.notes,
        created_at=po.created_at,
        updated_at=po.updated_at,
    )


def _detail(db: Session, po: ProductionOrder, cls=ProductionOrderDetailResult):
    inspections = (
        db.query(QualityInspection)
        .filter(QualityInspection.reference_type == "production_order", QualityInspection.reference_id == po.id)
        .order_by(QualityInspection.created_at.asc())
        .all()
    )
    mats = sorted(po.material_consumptions, key=lambda m: m.line_number)
    return cls(
        **_summary_fields(po),
        operations=[OperationResult.model_validate(op) for op in po.operations],
        material_consumptions=[MaterialConsumptionResult.model_validate(m) for m in mats],
        quality_inspections=[QualityInspectionResult.model_validate(qi) for qi in inspections],
    )


# ---- Queries ----
def list_production_orders(db: Session, *, status: str | None = None, limit: int = 200) -> list[ProductionOrderSummary]:
    q = db.query(ProductionOrder)
    if status:
        q = q.filter(ProductionOrder.status == status)
    rows = q.order_by(ProductionOrder.created_at.desc()).limit(limit).all()
    return [ProductionOrderSummary(**_summary_fields(po)) for po in rows]


def get_production_order_detail(db: Session, order_id: str) -> ProductionOrderDetailResult:
    return _detail(db, _get_order(db, order_id))


def preview_materials(db: Session, bom_id: str, quantity) -> MaterialPreviewResult:
    qty = to_quantity(quantity)
    planner = _planner_for(db, bom_id, qty)
    return MaterialPreviewResult(
        bom_id=bom_id,
        product_id=planner.product_id,
        quantity=qty,
        materials=[MaterialLineResult(**vars(m)) for m in planner.materials],
    )


# ---- Commands ----
def _check_operations(db: Session, data: ProductionOrderIn) -> list[ProductionOrderOperation]:
    ops = []
    for idx, op in enumerate(data.operations):
        if not db.get(WorkCenter, op.work_center_id):
            raise ValidationError("Work center not found", field=f"operations[{idx}].work_center_id")
        if op.planned_duration is not None and op.planned_duration < 0:
            raise ValidationError("Planned duration cannot be negative", field=f"operations[{idx}].planned_duration")
        ops.append(ProductionOrderOperation(
            sequence=op.sequence if op.sequence is not None else idx + 1,
            name=op.name,
            work_center_id=op.work_center_id,
            planned_duration=op.planned_duration or Decimal("0"),
            actual_duration=op.actual_duration,
            status=op.status or "Not Started",
            notes=op.notes,
        ))
    return ops


def _check_materials(db: Session, data: ProductionOrderIn, planned: list[MaterialLine]) -> list[MaterialConsumption]:
    if data.materials is None:
        for m in planned:
            if m.required_quantity <= 0:
                raise ValidationError("Order quantity is too small for the BOM: a material line rounds to zero", field="quantity")
        lines = [(m.product_id, m.required_quantity, m.unit_of_measure, None, "Pending") for m in planned]
    else:
        lines = []
        for idx, m in enumerate(data.materials):
            if not db.get(Product, m.product_id):
                raise ValidationError("Material product not found", field=f"materials[{idx}].product_id")
            required = to_quantity(m.required_quantity, field_name=f"materials[{idx}].required_quantity")
            consumed = None
            if m.consumed_quantity is not None:
                consumed = to_quantity(m.consumed_quantity, field_name=f"materials[{idx}].consumed_quantity", allow_zero=True)
            if not (m.unit_of_measure or "").strip():
                raise ValidationError("Unit of measure is required", field=f"materials[{idx}].unit_of_measure")
            lines.append((m.product_id, required, m.unit_of_measure.strip(), consumed, m.status or "Pending"))
    return [
        MaterialConsumption(
            line_number=n,
            product_id=product_id,
            required_quantity=required,
            unit_of_measure=uom,
            consumed_quantity=consumed,
            status=status,
        )
        for n, (product_id, required, uom, consumed, status) in enumerate(lines, start=1)
    ]


def create_production_order(db: Session, data: ProductionOrderIn) -> CreateProductionOrderResult:
    """Validate, derive (or accept) the material snapshot, and persist header, operations
    and consumption lines in one commit."""
    validate_order_submission(OrderDraft(
        quantity=data.quantity,
        planned_start_date=data.planned_start_date,
        planned_end_date=data.planned_end_date,
        operations=list(data.operations),
    ))

    planner = _planner_for(db, data.bom_id, data.quantity)
    if data.product_id and data.product_id != planner.product_id:
        raise ValidationError("Product does not match the selected BOM", field="product_id")
    header = db.get(BillOfMaterials, data.bom_id)
    if not header.is_active:
        raise ValidationError("BOM is not active", field="bom_id")

    operations = _check_operations(db, data)
    materials = _check_materials(db, data, planner.materials)

    order_number = (data.order_number or "").strip() or _generate_order_number()
    if db.query(ProductionOrder).filter(ProductionOrder.order_number == order_number).first():
        raise ConflictError(DUPLICATE_ORDER_NUMBER, field="order_number")

    with unit_of_work(db, conflict_message=DUPLICATE_ORDER_NUMBER, conflict_field="order_number"):
        po = ProductionOrder(
            order_number=order_number,
            bom_id=data.bom_id,
            product_id=planner.product_id,
            quantity=data.quantity,
            unit_of_measure=data.unit_of_measure or "Each",
            planned_start_date=data.planned_start_date,
            planned_end_date=data.planned_end_date,
            status=plain(data.status),
            priority=plain(data.priority),
            reference=data.reference,
            notes=data.notes,
            operations=operations,
            material_consumptions=materials,
        )
        db.add(po)
        db.flush()
        publish(db, "manufacturing.production_order.created", {
            "id": po.id,
            "order_number": order_number,
            "bom_id": data.bom_id,
            "quantity": str(data.quantity),
        })

    logger.info(
        "production order %s (%s) created from BOM %s: qty %s, %d operations, %d material lines",
        po.id, order_number, data.bom_id, data.quantity, len(operations), len(materials),
    )
    return _detail(db, _get_order(db, po.id), CreateProductionOrderResult)


def update_production_order(db: Session, order_id: str, changes: dict) -> ProductionOrderDetailResult:
    """Header edits only. Status may move to any value; material lines stay as snapshotted."""
    po = _get_order(db, order_id)
    if not changes:
        raise ValidationError("No fields provided for update")
    for key in ("status", "priority", "completed_quantity"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be null", field=key)
    if "completed_quantity" in changes:
        changes["completed_quantity"] = to_quantity(changes["completed_quantity"], field_name="completed_quantity", allow_zero=True)
    start = changes.get("actual_start_date", po.actual_start_date)
    end = changes.get("actual_end_date", po.actual_end_date)
    if start is not None and end is not None and as_utc(end) < as_utc(start):
        raise ValidationError("Actual end date must be on or after the actual start date", field="actual_end_date")

    previous_status = po.status
    with unit_of_work(db):
        applied = apply_changes(po, changes)
        publish(db, "manufacturing.production_order.updated", {
            "id": po.id,
            "fields": applied,
            "previous_status": previous_status,
            "status": po.status,
        })

    logger.info("production order %s updated (%s)", po.id, ", ".join(applied))
    return _detail(db, _get_order(db, order_id))


def add_quality_inspection(db: Session, order_id: str, data: QualityInspectionIn) -> QualityInspectionResult:
    po = _get_order(db, order_id)
    quantity = to_quantity(data.quantity)
    counts = {}
    for key in ("quantity_passed", "quantity_failed"):
        value = getattr(data, key)
        counts[key] = to_quantity(value, field_name=key, allow_zero=True) if value is not None else None

    with unit_of_work(db):
        qi = QualityInspection(
            reference_type="production_order",
            reference_id=po.id,
            product_id=po.product_id,
            result=plain(data.result),
            quantity=quantity,
            quantity_passed=counts["quantity_passed"],
            quantity_failed=counts["quantity_failed"],
            inspected_by=data.inspected_by,
            notes=data.notes,
        )
        db.add(qi)
        db.flush()

    logger.info("quality inspection %s recorded for production order %s: %s", qi.id, po.id, qi.result)
    return QualityInspectionResult.model_validate(qi)
