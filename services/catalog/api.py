from __future__ import annotations

import logging
import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.db.models.catalog import Product, WorkCenter
from app.db.session import get_db
from services._crud import commit_refresh

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


# ---- Schemas ----
class ProductIn(BaseModel):
    sku: str = Field(..., max_length=64)
    name: str = Field(..., max_length=256)
    price: Decimal = Decimal("0")
    unit_of_measure: str = Field(default="Each", max_length=32)
    description: str | None = None


class WorkCenterIn(BaseModel):
    name: str = Field(..., max_length=256)
    code: str | None = Field(default=None, max_length=32)
    capacity: Decimal | None = None
    status: str = Field(default="Active", max_length=24)
    notes: str | None = None


def _product_out(p: Product) -> dict:
    return {
        "id": p.id,
        "sku": p.sku,
        "name": p.name,
        "price": str(p.price),
        "unit_of_measure": p.unit_of_measure,
        "is_active": p.is_active,
        "description": p.description,
    }


def _wc_out(w: WorkCenter) -> dict:
    return {
        "id": w.id,
        "code": w.code,
        "name": w.name,
        "capacity": str(w.capacity) if w.capacity is not None else None,
        "status": w.status,
        "notes": w.notes,
    }


# ---- Products ----
@router.get("/products")
def list_products(db: Session = Depends(get_db), limit: int = Query(500, ge=1, le=1000)):
    rows = db.query(Product).order_by(Product.sku.asc()).limit(limit).all()
    return [_product_out(p) for p in rows]


@router.get("/products/{product_id}")
def get_product(product_id: str, db: Session = Depends(get_db)):
    p = db.get(Product, product_id)
    if not p:
        raise NotFoundError("Product not found", field="product_id")
    return _product_out(p)


@router.post("/products", status_code=201)
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    sku = payload.sku.strip()
    if not sku or not payload.name.strip():
        raise ValidationError("sku and name are required", field="sku" if not sku else "name")
    if payload.price < 0:
        raise ValidationError("Price cannot be negative", field="price")
    if db.query(Product).filter(Product.sku == sku).first():
        raise ConflictError("Product SKU already exists", field="sku")
    p = commit_refresh(db, Product(
        sku=sku,
        name=payload.name.strip(),
        price=payload.price,
        unit_of_measure=payload.unit_of_measure,
        description=payload.description,
    ))
    logger.info("product %s created (%s)", p.id, p.sku)
    return _product_out(p)


# ---- Work centers ----
@router.get("/manufacturing/work-centers")
def list_work_centers(db: Session = Depends(get_db), limit: int = Query(200, ge=1, le=1000)):
    rows = db.query(WorkCenter).order_by(WorkCenter.created_at.desc()).limit(limit).all()
    return [_wc_out(w) for w in rows]


@router.get("/manufacturing/work-centers/{wc_id}")
def get_work_center(wc_id: str, db: Session = Depends(get_db)):
    w = db.get(WorkCenter, wc_id)
    if not w:
        raise NotFoundError("Work center not found", field="work_center_id")
    return _wc_out(w)


@router.post("/manufacturing/work-centers", status_code=201)
def create_work_center(payload: WorkCenterIn, db: Session = Depends(get_db)):
    code = (payload.code or "").strip() or f"WC-{str(uuid.uuid4())[:6].upper()}"
    if db.query(WorkCenter).filter(WorkCenter.code == code).first():
        raise ConflictError("Work center code already exists", field="code")
    w = commit_refresh(db, WorkCenter(
        code=code,
        name=payload.name.strip() or code,
        capacity=payload.capacity,
        status=payload.status,
        notes=payload.notes,
    ))
    logger.info("work center %s created (%s)", w.id, w.code)
    return _wc_out(w)
