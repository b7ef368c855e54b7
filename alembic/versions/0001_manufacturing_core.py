"""manufacturing core tables

Revision ID: 0001_manufacturing_core
Revises:
Create Date: 2026-10-19T00:00:00Z
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_manufacturing_core"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column("id", sa.String(length=36), primary_key=True)


def _created_at():
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def _updated_at():
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True)


def upgrade():
    # Catalog
    op.create_table(
        "product",
        _id(), _created_at(), _updated_at(),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("price", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("unit_of_measure", sa.String(length=32), nullable=False, server_default="Each"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index("ix_product_sku", "product", ["sku"], unique=True)

    op.create_table(
        "work_center",
        _id(), _created_at(), _updated_at(),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("capacity", sa.Numeric(18, 6), nullable=True),
        sa.Column("status", sa.String(length=24), nullable=False, server_default="Active"),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_work_center_code", "work_center", ["code"], unique=True)

    # Bills of materials
    op.create_table(
        "bill_of_materials",
        _id(), _created_at(), _updated_at(),
        sa.Column("product_id", sa.String(length=36), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("version", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("manufacturing_type", sa.String(length=16), nullable=False, server_default="Discrete"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("revision_notes", sa.Text(), nullable=True),
        sa.Column("yield_percentage", sa.Numeric(10, 4), nullable=False, server_default="100"),
        sa.Column("total_cost", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("approved_by", sa.String(length=128), nullable=True),
        sa.Column("approval_date", sa.Date(), nullable=True),
        sa.UniqueConstraint("product_id", "version", name="uq_bom_product_version"),
    )
    op.create_index("ix_bill_of_materials_product_id", "bill_of_materials", ["product_id"])

    op.create_table(
        "bom_item",
        _id(), _created_at(),
        sa.Column("bom_id", sa.String(length=36), sa.ForeignKey("bill_of_materials.id"), nullable=False),
        sa.Column("component_id", sa.String(length=36), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("quantity", sa.Numeric(18, 6), nullable=False),
        sa.Column("unit_of_measure", sa.String(length=32), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_optional", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_sub_assembly", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("scrap_rate", sa.Numeric(10, 4), nullable=False, server_default="0"),
        sa.Column("operation", sa.String(length=128), nullable=True),
        sa.Column("work_center_id", sa.String(length=36), sa.ForeignKey("work_center.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_bom_item_bom_id", "bom_item", ["bom_id"])
    op.create_index("ix_bom_item_component_id", "bom_item", ["component_id"])
    op.create_index("ix_bom_item_bom_position", "bom_item", ["bom_id", "position"])

    # Production orders
    op.create_table(
        "production_order",
        _id(), _created_at(), _updated_at(),
        sa.Column("order_number", sa.String(length=64), nullable=False),
        sa.Column("bom_id", sa.String(length=36), sa.ForeignKey("bill_of_materials.id"), nullable=False),
        sa.Column("product_id", sa.String(length=36), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("quantity", sa.Numeric(18, 6), nullable=False),
        sa.Column("completed_quantity", sa.Numeric(18, 6), nullable=False, server_default="0"),
        sa.Column("unit_of_measure", sa.String(length=32), nullable=False, server_default="Each"),
        sa.Column("planned_start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("planned_end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("actual_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Planned"),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default="Normal"),
        sa.Column("reference", sa.String(length=128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_production_order_order_number", "production_order", ["order_number"], unique=True)
    op.create_index("ix_production_order_bom_id", "production_order", ["bom_id"])
    op.create_index("ix_production_order_product_id", "production_order", ["product_id"])
    op.create_index("ix_production_order_planned_start_date", "production_order", ["planned_start_date"])
    op.create_index("ix_production_order_planned_end_date", "production_order", ["planned_end_date"])

    op.create_table(
        "production_order_operation",
        _id(), _created_at(),
        sa.Column("production_order_id", sa.String(length=36), sa.ForeignKey("production_order.id"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=True),
        sa.Column("work_center_id", sa.String(length=36), sa.ForeignKey("work_center.id"), nullable=False),
        sa.Column("planned_duration", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("actual_duration", sa.Numeric(10, 2), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Not Started"),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_production_order_operation_production_order_id", "production_order_operation", ["production_order_id"])
    op.create_index("ix_production_order_operation_work_center_id", "production_order_operation", ["work_center_id"])
    op.create_index("ix_po_op_po_seq", "production_order_operation", ["production_order_id", "sequence"])

    op.create_table(
        "material_consumption",
        _id(), _created_at(),
        sa.Column("production_order_id", sa.String(length=36), sa.ForeignKey("production_order.id"), nullable=False),
        sa.Column("product_id", sa.String(length=36), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("required_quantity", sa.Numeric(18, 6), nullable=False),
        sa.Column("consumed_quantity", sa.Numeric(18, 6), nullable=True),
        sa.Column("unit_of_measure", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Pending"),
    )
    op.create_index("ix_material_consumption_production_order_id", "material_consumption", ["production_order_id"])
    op.create_index("ix_material_consumption_product_id", "material_consumption", ["product_id"])
    op.create_index("ix_mat_cons_po_line", "material_consumption", ["production_order_id", "line_number"])

    op.create_table(
        "quality_inspection",
        _id(), _created_at(),
        sa.Column("reference_type", sa.String(length=32), nullable=False),
        sa.Column("reference_id", sa.String(length=36), nullable=False),
        sa.Column("product_id", sa.String(length=36), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("result", sa.String(length=16), nullable=False),
        sa.Column("quantity", sa.Numeric(18, 6), nullable=False),
        sa.Column("quantity_passed", sa.Numeric(18, 6), nullable=True),
        sa.Column("quantity_failed", sa.Numeric(18, 6), nullable=True),
        sa.Column("inspected_by", sa.String(length=128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_quality_inspection_reference_id", "quality_inspection", ["reference_id"])
    op.create_index("ix_qi_reference", "quality_inspection", ["reference_type", "reference_id"])

    # Outbox
    op.create_table(
        "outbox_event",
        _id(), _created_at(),
        sa.Column("topic", sa.String(length=128), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column("delivered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_outbox_event_topic", "outbox_event", ["topic"])
    op.create_index("ix_outbox_topic_created", "outbox_event", ["topic", "created_at"])
    op.create_index("ix_outbox_delivery", "outbox_event", ["delivered", "created_at"])


def downgrade():
    for table in (
        "outbox_event",
        "quality_inspection",
        "material_consumption",
        "production_order_operation",
        "production_order",
        "bom_item",
        "bill_of_materials",
        "work_center",
        "product",
    ):
        op.drop_table(table)
