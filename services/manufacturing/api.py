from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from services.manufacturing import bom_service, production_service
from services.manufacturing.schemas import (
    AddBomItemResult,
    BomCopyIn,
    BomDetailResult,
    BomIn,
    BomItemIn,
    BomPatch,
    BomSummary,
    CopyBomResult,
    CopySuggestionResult,
    CreateBomResult,
    CreateProductionOrderResult,
    DeleteBomItemResult,
    MaterialPreviewIn,
    MaterialPreviewResult,
    NextVersionResult,
    OrderStatus,
    ProductionOrderDetailResult,
    ProductionOrderIn,
    ProductionOrderPatch,
    ProductionOrderSummary,
    QualityInspectionIn,
    QualityInspectionResult,
    UpdateBomResult,
)

router = APIRouter(prefix="/api/manufacturing", tags=["manufacturing"])

@router.get("/health")
def health():
    return {"ok": True, "service": "manufacturing"}

# ---- Bills of materials ----
@router.get("/boms", response_model=list[BomSummary])
def list_boms(product_id: str | None = None, db: Session = Depends(get_db)):
    return bom_service.list_boms(db, product_id=product_id)

@router.get("/boms/next-version", response_model=NextVersionResult)
def next_version(product_id: str = Query(...), db: Session = Depends(get_db)):
    return NextVersionResult(product_id=product_id, version=bom_service.next_version_for_product(db, product_id))

@router.post("/boms", response_model=CreateBomResult, status_code=201)
def create_bom(payload: BomIn, db: Session = Depends(get_db)):
    return bom_service.create_bom(db, payload)

@router.get("/boms/{bom_id}", response_model=BomDetailResult)
def get_bom(bom_id: str, db: Session = Depends(get_db)):
    return bom_service.get_bom_detail(db, bom_id)

@router.patch("/boms/{bom_id}", response_model=UpdateBomResult)
def update_bom(bom_id: str, payload: BomPatch, db: Session = Depends(get_db)):
    return bom_service.update_bom(db, bom_id, payload.model_dump(exclude_unset=True))

@router.post("/boms/{bom_id}/toggle-active", response_model=UpdateBomResult)
def toggle_bom_active(bom_id: str, db: Session = Depends(get_db)):
    return bom_service.toggle_active(db, bom_id)

@router.get("/boms/{bom_id}/copy-suggestion", response_model=CopySuggestionResult)
def copy_suggestion(bom_id: str, db: Session = Depends(get_db)):
    return bom_service.copy_suggestion(db, bom_id)

@router.post("/boms/{bom_id}/copy", response_model=CopyBomResult, status_code=201)
def copy_bom(bom_id: str, payload: BomCopyIn, db: Session = Depends(get_db)):
    return bom_service.copy_bom(db, bom_id, payload)

@router.post("/boms/{bom_id}/items", response_model=AddBomItemResult, status_code=201)
def add_bom_item(bom_id: str, payload: BomItemIn, db: Session = Depends(get_db)):
    return bom_service.add_item(db, bom_id, payload)

@router.delete("/boms/{bom_id}/items/{item_id}", response_model=DeleteBomItemResult)
def delete_bom_item(bom_id: str, item_id: str, db: Session = Depends(get_db)):
    return bom_service.remove_item(db, bom_id, item_id)

# ---- Production orders ----
@router.get("/production-orders", response_model=list[ProductionOrderSummary])
def list_production_orders(status: OrderStatus | None = None, limit: int = Query(200, ge=1, le=1000), db: Session = Depends(get_db)):
    return production_service.list_production_orders(db, status=status.value if status else None, limit=limit)

@router.post("/production-orders/preview-materials", response_model=MaterialPreviewResult)
def preview_materials(payload: MaterialPreviewIn, db: Session = Depends(get_db)):
    return production_service.preview_materials(db, payload.bom_id, payload.quantity)

@router.post("/production-orders", response_model=CreateProductionOrderResult, status_code=201)
def create_production_order(payload: ProductionOrderIn, db: Session = Depends(get_db)):
    return production_service.create_production_order(db, payload)

@router.get("/production-orders/{order_id}", response_model=ProductionOrderDetailResult)
def get_production_order(order_id: str, db: Session = Depends(get_db)):
    return production_service.get_production_order_detail(db, order_id)

@router.patch("/production-orders/{order_id}", response_model=ProductionOrderDetailResult)
def update_production_order(order_id: str, payload: ProductionOrderPatch, db: Session = Depends(get_db)):
    return production_service.update_production_order(db, order_id, payload.model_dump(exclude_unset=True))

@router.post("/production-orders/{order_id}/quality-inspections", response_model=QualityInspectionResult, status_code=201)
def add_quality_inspection(order_id: str, payload: QualityInspectionIn, db: Session = Depends(get_db)):
    return production_service.add_quality_inspection(db, order_id, payload)
