from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ManufacturingType(str, Enum):
    DISCRETE = "Discrete"
    PROCESS = "Process"
    REPETITIVE = "Repetitive"
    BATCH = "Batch"
    LEAN = "Lean"
    CUSTOM = "Custom"


class OrderStatus(str, Enum):
    PLANNED = "Planned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"
    CANCELLED = "Cancelled"


class OrderPriority(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


class InspectionResult(str, Enum):
    PASS = "Pass"
    FAIL = "Fail"
    PENDING_REVIEW = "PendingReview"
    ACCEPTABLE = "Acceptable"
    REWORK = "Rework"


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ---- BOM inputs ----
class BomIn(BaseModel):
    product_id: str
    name: str = Field(..., max_length=256)
    version: str = Field(..., max_length=32)
    manufacturing_type: ManufacturingType = ManufacturingType.DISCRETE
    description: str | None = None
    is_active: bool = True
    notes: str | None = None
    revision_notes: str | None = None
    yield_percentage: Decimal = Decimal("100")


class BomPatch(BaseModel):
    name: str | None = Field(default=None, max_length=256)
    description: str | None = None
    is_active: bool | None = None
    manufacturing_type: ManufacturingType | None = None
    notes: str | None = None
    revision_notes: str | None = None
    yield_percentage: Decimal | None = None
    approved_by: str | None = None
    approval_date: date | None = None


class BomCopyIn(BaseModel):
    new_version: str = Field(..., max_length=32)
    new_name: str | None = Field(default=None, max_length=256)


class BomItemIn(BaseModel):
    component_id: str
    quantity: Decimal
    unit_of_measure: str = Field(..., max_length=32)
    position: int | None = None
    is_optional: bool = False
    is_sub_assembly: bool = False
    scrap_rate: Decimal = Decimal("0")
    operation: str | None = Field(default=None, max_length=128)
    notes: str | None = None
    work_center_id: str | None = None


# ---- BOM results ----
class BomItemResult(_Out):
    id: str
    bom_id: str
    component_id: str
    component_name: str | None = None
    component_sku: str | None = None
    quantity: Decimal
    unit_of_measure: str
    position: int
    is_optional: bool
    is_sub_assembly: bool
    scrap_rate: Decimal
    operation: str | None = None
    notes: str | None = None
    work_center_id: str | None = None
    work_center_name: str | None = None
    unit_cost: Decimal
    total_cost: Decimal


class BomSummary(_Out):
    id: str
    product_id: str
    product_name: str | None = None
    product_sku: str | None = None
    version: str
    name: str
    description: str | None = None
    manufacturing_type: ManufacturingType
    is_active: bool
    notes: str | None = None
    revision_notes: str | None = None
    yield_percentage: Decimal
    total_cost: Decimal
    component_count: int
    approved_by: str | None = None
    approval_date: date | None = None
    created_at: datetime
    updated_at: datetime | None = None


class BomDetailResult(BomSummary):
    items: list[BomItemResult]


class CreateBomResult(_Out):
    id: str
    product_id: str
    version: str
    name: str
    is_active: bool
    created_at: datetime
    message: str = "BOM created successfully"


class UpdateBomResult(_Out):
    id: str
    name: str
    is_active: bool
    revision_notes: str | None = None
    message: str = "BOM updated successfully"


class CopyBomResult(_Out):
    id: str
    product_id: str
    version: str
    name: str
    copied_from: str
    item_count: int
    message: str = "BOM copied successfully"


class AddBomItemResult(BomItemResult):
    message: str = "BOM item added successfully"


class DeleteBomItemResult(_Out):
    id: str
    bom_id: str
    message: str = "BOM item deleted successfully"


class NextVersionResult(_Out):
    product_id: str
    version: str


class CopySuggestionResult(_Out):
    new_version: str
    new_name: str


# ---- Production order inputs ----
class OperationIn(BaseModel):
    work_center_id: str
    sequence: int | None = None
    name: str | None = Field(default=None, max_length=256)
    planned_duration: Decimal = Decimal("0")
    actual_duration: Decimal | None = None
    status: str = "Not Started"
    notes: str | None = None


class MaterialIn(BaseModel):
    product_id: str
    required_quantity: Decimal
    unit_of_measure: str = Field(..., max_length=32)
    consumed_quantity: Decimal | None = None
    status: str = "Pending"


class ProductionOrderIn(BaseModel):
    bom_id: str
    product_id: str | None = None
    quantity: Decimal
    unit_of_measure: str = "Each"
    planned_start_date: datetime
    planned_end_date: datetime
    status: OrderStatus = OrderStatus.PLANNED
    priority: OrderPriority = OrderPriority.NORMAL
    order_number: str | None = Field(default=None, max_length=64)
    reference: str | None = Field(default=None, max_length=128)
    notes: str | None = None
    operations: list[OperationIn] = Field(default_factory=list)
    materials: list[MaterialIn] | None = None


class ProductionOrderPatch(BaseModel):
    status: OrderStatus | None = None
    priority: OrderPriority | None = None
    actual_start_date: datetime | None = None
    actual_end_date: datetime | None = None
    completed_quantity: Decimal | None = None
    reference: str | None = Field(default=None, max_length=128)
    notes: str | None = None


class MaterialPreviewIn(BaseModel):
    bom_id: str
    quantity: Decimal


class QualityInspectionIn(BaseModel):
    result: InspectionResult
    quantity: Decimal
    quantity_passed: Decimal | None = None
    quantity_failed: Decimal | None = None
    inspected_by: str | None = Field(default=None, max_length=128)
    notes: str | None = None


# ---- Production order results ----
class OperationResult(_Out):
    id: str
    sequence: int
    name: str | None = None
    work_center_id: str
    planned_duration: Decimal
    actual_duration: Decimal | None = None
    status: str
    notes: str | None = None


class MaterialLineResult(_Out):
    product_id: str
    required_quantity: Decimal
    unit_of_measure: str


class MaterialConsumptionResult(MaterialLineResult):
    id: str
    line_number: int
    consumed_quantity: Decimal | None = None
    status: str


class QualityInspectionResult(_Out):
    id: str
    reference_type: str
    reference_id: str
    product_id: str
    result: str
    quantity: Decimal
    quantity_passed: Decimal | None = None
    quantity_failed: Decimal | None = None
    inspected_by: str | None = None
    notes: str | None = None
    created_at: datetime


class ProductionOrderSummary(_Out):
    id: str
    order_number: str
    bom_id: str
    product_id: str
    quantity: Decimal
    completed_quantity: Decimal
    unit_of_measure: str
    planned_start_date: datetime
    planned_end_date: datetime
    actual_start_date: datetime | None = None
    actual_end_date: datetime | None = None
    status: OrderStatus
    priority: OrderPriority
    reference: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ProductionOrderDetailResult(ProductionOrderSummary):
    operations: list[OperationResult]
    material_consumptions: list[MaterialConsumptionResult] = Field(alias="materialConsumptions")
    quality_inspections: list[QualityInspectionResult] = Field(alias="qualityInspections")


class CreateProductionOrderResult(ProductionOrderDetailResult):
    message: str = "Production order created successfully"


class MaterialPreviewResult(_Out):
    bom_id: str
    product_id: str
    quantity: Decimal
    materials: list[MaterialLineResult]
