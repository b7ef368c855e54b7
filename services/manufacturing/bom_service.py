"""
BOM registry: headers, component lines, cost roll-up, and the copy operator
that turns one BOM into a new version of the same product.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.db.models.catalog import Product, WorkCenter
from app.db.models.manufacturing import BillOfMaterials, BOMItem
from app.events.bus import publish
from services._crud import apply_changes, plain, unit_of_work
from services.manufacturing.planner import QUANTUM, BomSnapshot, PlanItem, to_quantity
from services.manufacturing.schemas import (
    AddBomItemResult,
    BomCopyIn,
    BomDetailResult,
    BomIn,
    BomItemIn,
    BomItemResult,
    BomSummary,
    CopyBomResult,
    CopySuggestionResult,
    CreateBomResult,
    DeleteBomItemResult,
    UpdateBomResult,
)
from services.manufacturing.versioning import next_version, suggest_copy_name, suggest_copy_version

logger = logging.getLogger(__name__)

DUPLICATE_VERSION = "A BOM with this product and version already exists"

# ---- Costing ----
def item_total_cost(unit_cost: Decimal | None, quantity: Decimal) -> Decimal:
    return (unit_cost or Decimal("0")) * quantity


def bom_total_cost(lines: Iterable[tuple[Decimal | None, Decimal]]) -> Decimal:
    """Sum of unit_cost * quantity over (unit_cost, quantity) pairs. Scrap rate is not applied."""
    return sum((item_total_cost(u, q) for u, q in lines), Decimal("0"))


def _unit_cost(item: BOMItem) -> Decimal:
    return item.component.price if item.component is not None else Decimal("0")


def _rollup(bom: BillOfMaterials) -> Decimal:
    """Value written to the stored header total_cost."""
    return bom_total_cost((_unit_cost(i), i.quantity) for i in bom.items).quantize(QUANTUM, rounding=ROUND_HALF_UP)


# ---- Lookups ----
def _get_bom(db: Session, bom_id: str, *, message: str = "BOM not found") -> BillOfMaterials:
    bom = (
        db.query(BillOfMaterials)
        .options(selectinload(BillOfMaterials.items).selectinload(BOMItem.component))
        .filter(BillOfMaterials.id == bom_id)
        .first()
    )
    if not bom:
        raise NotFoundError(message, field="bom_id", extra={"bom_id": bom_id})
    return bom


def _version_taken(db: Session, product_id: str, version: str) -> BillOfMaterials | None:
    return (
        db.query(BillOfMaterials)
        .filter(BillOfMaterials.product_id == product_id, BillOfMaterials.version == version)
        .first()
    )


def _require_text(value: str | None, field: str, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} is required", field=field)
    return text


# ---- Views ----
def _item_view(item: BOMItem, cls=BomItemResult):
    unit_cost = _unit_cost(item)
    return cls(
        id=item.id,
        bom_id=item.bom_id,
        component_id=item.component_id,
        component_name=item.component.name if item.component else None,
        component_sku=item.component.sku if item.component else None,
        quantity=item.quantity,
        unit_of_measure=item.unit_of_measure,
        position=item.position,
        is_optional=item.is_optional,
        is_sub_assembly=item.is_sub_assembly,
        scrap_rate=item.scrap_rate,
        operation=item.operation,
        notes=item.notes,
        work_center_id=item.work_center_id,
        work_center_name=item.work_center.name if item.work_center else None,
        unit_cost=unit_cost,
        total_cost=item_total_cost(unit_cost, item.quantity),
    )


def _header_fields(bom: BillOfMaterials) -> dict:
    return dict(
        id=bom.id,
        product_id=bom.product_id,
        product_name=bom.product.name if bom.product else None,
        product_sku=bom.product.sku if bom.product else None,
        version=bom.version,
        name=bom.name,
        description=bom.description,
        manufacturing_type=bom.manufacturing_type,
        is_active=bom.is_active,
        notes=bom.notes,
        revision_notes=bom.revision_notes,
        yield_percentage=bom.yield_percentage,
        total_cost=bom.total_cost,
        component_count=len(bom.items),
        approved_by=bom.approved_by,
        approval_date=bom.approval_date,
        created_at=bom.created_at,
        updated_at=bom.updated_at,
    )


# ---- Queries ----
def list_boms(db: Session, *, product_id: str | None = None) -> list[BomSummary]:
    q = db.query(BillOfMaterials).options(
        selectinload(BillOfMaterials.product),
        selectinload(BillOfMaterials.items).selectinload(BOMItem.component),
    )
    if product_id:
        q = q.filter(BillOfMaterials.product_id == product_id)
    rows = q.order_by(BillOfMaterials.created_at.desc()).all()
    return [BomSummary(**_header_fields(b)) for b in rows]


def get_bom_detail(db: Session, bom_id: str) -> BomDetailResult:
    bom = _get_bom(db, bom_id)
    return BomDetailResult(**_header_fields(bom), items=[_item_view(i) for i in bom.items])


def load_bom_snapshot(db: Session, bom_id: str) -> BomSnapshot:
    """BOM as the material planner sees it: its product and the component lines."""
    bom = _get_bom(db, bom_id)
    return BomSnapshot(
        bom_id=bom.id,
        product_id=bom.product_id,
        items=tuple(PlanItem(i.component_id, i.quantity, i.unit_of_measure, i.position) for i in bom.items),
    )


def next_version_for_product(db: Session, product_id: str) -> str:
    rows = db.query(BillOfMaterials.product_id, BillOfMaterials.version).filter(BillOfMaterials.product_id == product_id).all()
    return next_version(({"product_id": p, "version": v} for p, v in rows), product_id)


def copy_suggestion(db: Session, bom_id: str) -> CopySuggestionResult:
    bom = _get_bom(db, bom_id)
    new_version = suggest_copy_version(bom.version)
    return CopySuggestionResult(new_version=new_version, new_name=suggest_copy_name(bom.name, new_version))


# ---- Commands ----
def create_bom(db: Session, data: BomIn) -> CreateBomResult:
    product_id = _require_text(data.product_id, "product_id", "Product ID")
    name = _require_text(data.name, "name", "BOM name")
    version = _require_text(data.version, "version", "Version")
    if data.manufacturing_type is None:
        raise ValidationError("Manufacturing type is required", field="manufacturing_type")

    if not db.get(Product, product_id):
        raise ValidationError("Product not found", field="product_id")
    existing = _version_taken(db, product_id, version)
    if existing:
        raise ConflictError(DUPLICATE_VERSION, field="version", extra={"existing_bom_id": existing.id})

    with unit_of_work(db, conflict_message=DUPLICATE_VERSION, conflict_field="version"):
        bom = BillOfMaterials(
            product_id=product_id,
            version=version,
            name=name,
            description=data.description,
            manufacturing_type=plain(data.manufacturing_type),
            is_active=data.is_active,
            notes=data.notes,
            revision_notes=data.revision_notes,
            yield_percentage=data.yield_percentage,
            total_cost=Decimal("0"),
        )
        db.add(bom)
        db.flush()
        publish(db, "manufacturing.bom.created", {"id": bom.id, "product_id": product_id, "version": version})

    db.refresh(bom)
    logger.info("BOM %s created for product %s version %s", bom.id, product_id, version)
    return CreateBomResult(
        id=bom.id, product_id=bom.product_id, version=bom.version, name=bom.name,
        is_active=bom.is_active, created_at=bom.created_at,
    )


def update_bom(db: Session, bom_id: str, changes: dict) -> UpdateBomResult:
    """Partial header update. Product and version are not editable; copy the BOM instead."""
    bom = _get_bom(db, bom_id)
    if not changes:
        raise ValidationError("No fields provided for update")
    if "name" in changes:
        changes["name"] = _require_text(changes["name"], "name", "BOM name")
    for key in ("is_active", "manufacturing_type", "yield_percentage"):
        if key in changes and changes[key] is None:
            raise ValidationError(f"{key} cannot be null", field=key)

    with unit_of_work(db):
        applied = apply_changes(bom, changes)
        publish(db, "manufacturing.bom.updated", {"id": bom.id, "fields": applied})

    logger.info("BOM %s updated (%s)", bom.id, ", ".join(applied))
    return UpdateBomResult(id=bom.id, name=bom.name, is_active=bom.is_active, revision_notes=bom.revision_notes)


def toggle_active(db: Session, bom_id: str) -> UpdateBomResult:
    bom = _get_bom(db, bom_id)
    return update_bom(db, bom_id, {"is_active": not bom.is_active})


def add_item(db: Session, bom_id: str, data: BomItemIn) -> AddBomItemResult:
    bom = _get_bom(db, bom_id)
    component_id = _require_text(data.component_id, "component_id", "Component ID")
    if component_id == bom.product_id:
        raise ValidationError("Cannot add the product itself as a component", field="component_id")
    quantity = to_quantity(data.quantity)
    uom = _require_text(data.unit_of_measure, "unit_of_measure", "Unit of measure")
    scrap_rate = data.scrap_rate if data.scrap_rate is not None else Decimal("0")
    if not (Decimal("0") <= scrap_rate <= Decimal("100")):
        raise ValidationError("Scrap rate must be between 0 and 100", field="scrap_rate")

    component = db.get(Product, component_id)
    if not component:
        raise ValidationError("Component product not found", field="component_id")
    work_center = None
    if data.work_center_id:
        work_center = db.get(WorkCenter, data.work_center_id)
        if not work_center:
            raise ValidationError("Work center not found", field="work_center_id")

    position = data.position
    if not position:
        position = (db.query(func.max(BOMItem.position)).filter(BOMItem.bom_id == bom.id).scalar() or 0) + 1

    with unit_of_work(db):
        item = BOMItem(
            component=component,
            quantity=quantity,
            unit_of_measure=uom,
            position=position,
            is_optional=data.is_optional,
            is_sub_assembly=data.is_sub_assembly,
            scrap_rate=scrap_rate,
            operation=data.operation,
            notes=data.notes,
            work_center=work_center,
        )
        bom.items.append(item)
        db.flush()
        bom.total_cost = _rollup(bom)
        publish(db, "manufacturing.bom.updated", {"id": bom.id, "item_added": item.id})

    logger.info("BOM %s: item %s added (component %s x %s)", bom.id, item.id, component_id, quantity)
    return _item_view(item, AddBomItemResult)


def remove_item(db: Session, bom_id: str, item_id: str) -> DeleteBomItemResult:
    bom = _get_bom(db, bom_id)
    item = next((i for i in bom.items if i.id == item_id), None)
    if item is None:
        raise NotFoundError("BOM item not found", field="item_id", extra={"item_id": item_id})

    with unit_of_work(db):
        bom.items.remove(item)
        db.flush()
        bom.total_cost = _rollup(bom)
        publish(db, "manufacturing.bom.updated", {"id": bom.id, "item_removed": item_id})

    logger.info("BOM %s: item %s removed", bom.id, item_id)
    return DeleteBomItemResult(id=item_id, bom_id=bom.id)


def copy_bom(db: Session, bom_id: str, data: BomCopyIn) -> CopyBomResult:
    """New version of the source BOM's product with its own copies of every line."""
    source = _get_bom(db, bom_id, message="Source BOM not found")
    new_version = _require_text(data.new_version, "new_version", "New version")
    existing = _version_taken(db, source.product_id, new_version)
    if existing:
        raise ConflictError(DUPLICATE_VERSION, field="new_version", extra={"existing_bom_id": existing.id})
    new_name = (data.new_name or "").strip() or suggest_copy_name(source.name, new_version)

    with unit_of_work(db, conflict_message=DUPLICATE_VERSION, conflict_field="new_version"):
        copy = BillOfMaterials(
            product_id=source.product_id,
            version=new_version,
            name=new_name,
            description=source.description,
            manufacturing_type=source.manufacturing_type,
            yield_percentage=source.yield_percentage,
            is_active=True,
            revision_notes=f"Copied from version {source.version}",
            total_cost=_rollup(source),
            items=[
                BOMItem(
                    component_id=i.component_id,
                    quantity=i.quantity,
                    unit_of_measure=i.unit_of_measure,
                    position=i.position,
                    is_optional=i.is_optional,
                    is_sub_assembly=i.is_sub_assembly,
                    scrap_rate=i.scrap_rate,
                    operation=i.operation,
                    notes=i.notes,
                    work_center_id=i.work_center_id,
                )
                for i in source.items
            ],
        )
        db.add(copy)
        db.flush()
        publish(db, "manufacturing.bom.copied", {"id": copy.id, "copied_from": source.id, "version": new_version})

    logger.info("BOM %s copied to %s as version %s (%d items)", source.id, copy.id, new_version, len(copy.items))
    return CopyBomResult(
        id=copy.id, product_id=copy.product_id, version=copy.version, name=copy.name,
        copied_from=source.id, item_count=len(copy.items),
    )
