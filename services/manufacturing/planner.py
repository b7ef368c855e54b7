"""
Material requirements for a production order.

Consumption lines are a function of (BOM items, order quantity) only:
``required_quantity = item.quantity * order.quantity`` for every item of the
BOM. They are computed while an order is authored and then stored as a
snapshot; later BOM edits do not touch existing orders. Derived quantities
are rounded half-up to the six decimal places the columns keep, so a preview
and the stored lines always agree.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Iterable

from app.core.errors import ValidationError

# Scale of every Numeric(18, 6) quantity column.
QUANTUM = Decimal("0.000001")


@dataclass(frozen=True)
class PlanItem:
    product_id: str
    quantity: Decimal
    unit_of_measure: str
    position: int = 0


@dataclass(frozen=True)
class BomSnapshot:
    bom_id: str
    product_id: str
    items: tuple[PlanItem, ...]


@dataclass(frozen=True)
class MaterialLine:
    product_id: str
    required_quantity: Decimal
    unit_of_measure: str


def to_decimal(value: Any, *, field_name: str = "quantity") -> Decimal:
    """Parse a wire value (decimal string or number) into a Decimal."""
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required", field=field_name)
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field_name} must be a decimal number", field=field_name) from None
    if not d.is_finite():
        raise ValidationError(f"{field_name} must be a finite number", field=field_name)
    return d


def to_quantity(value: Any, *, field_name: str = "quantity", allow_zero: bool = False) -> Decimal:
    """A stored quantity: at most six decimal places and greater than zero
    (or not negative when ``allow_zero``)."""
    d = to_decimal(value, field_name=field_name)
    if d != d.quantize(QUANTUM):
        raise ValidationError(f"{field_name} allows at most 6 decimal places", field=field_name)
    if d < 0 or (d == 0 and not allow_zero):
        label = "cannot be negative" if allow_zero else "must be greater than zero"
        raise ValidationError(f"{field_name} {label}", field=field_name)
    return d


def derive_materials(items: Iterable[PlanItem], quantity: Decimal) -> list[MaterialLine]:
    qty = to_decimal(quantity)
    ordered = sorted(items, key=lambda i: i.position)
    return [
        MaterialLine(i.product_id, (i.quantity * qty).quantize(QUANTUM, rounding=ROUND_HALF_UP), i.unit_of_measure)
        for i in ordered
    ]


class MaterialPlanner:
    """Keeps the consumption list of one order being authored in sync.

    ``loader(bom_id) -> BomSnapshot`` fetches a BOM. The fetched item list is
    cached under its BOM id so quantity edits rescale without refetching; the
    cache is dropped whenever another BOM is selected.
    """

    def __init__(self, loader: Callable[[str], BomSnapshot], quantity: Any = Decimal("1")):
        self._loader = loader
        self._cache: dict[str, tuple[PlanItem, ...]] = {}
        self.bom_id: str | None = None
        self.product_id: str | None = None
        self.quantity: Decimal = to_decimal(quantity)
        self.materials: list[MaterialLine] = []

    def select_bom(self, bom_id: str) -> list[MaterialLine]:
        snapshot = self._loader(bom_id)
        self._cache = {bom_id: snapshot.items}
        self.bom_id = bom_id
        self.product_id = snapshot.product_id
        self.materials = derive_materials(snapshot.items, self.quantity)
        return self.materials

    def set_quantity(self, quantity: Any) -> list[MaterialLine]:
        self.quantity = to_decimal(quantity)
        if self.bom_id is not None:
            self.materials = derive_materials(self._cache[self.bom_id], self.quantity)
        return self.materials

    def cached_items(self, bom_id: str) -> tuple[PlanItem, ...] | None:
        return self._cache.get(bom_id)


@dataclass
class OrderDraft:
    quantity: Decimal
    planned_start_date: datetime | None
    planned_end_date: datetime | None
    operations: list[Any] = field(default_factory=list)


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def validate_order_submission(draft: OrderDraft) -> None:
    """Checks run before an order is persisted, date ordering first."""
    if draft.planned_start_date is None:
        raise ValidationError("Planned start date is required", field="planned_start_date")
    if draft.planned_end_date is None:
        raise ValidationError("Planned end date is required", field="planned_end_date")
    if as_utc(draft.planned_end_date) < as_utc(draft.planned_start_date):
        raise ValidationError("Planned end date must be on or after the planned start date", field="planned_end_date")
    if not draft.operations:
        raise ValidationError("At least one operation is required", field="operations")
    to_quantity(draft.quantity)
