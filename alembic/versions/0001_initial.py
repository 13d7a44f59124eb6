from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.Integer, nullable=False),
        sa.Column("updated_at", sa.Integer, nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)

    if not insp.has_table("products"):
        op.create_table(
            "products",
            sa.Column("product_id", sa.Integer, primary_key=True),
            sa.Column("product_code", sa.Text, nullable=False, unique=True),
            sa.Column("product_name", sa.Text, nullable=False),
            sa.Column("image_url", sa.Text, nullable=True),
            *_timestamps(),
        )

    if not insp.has_table("materials"):
        op.create_table(
            "materials",
            sa.Column("material_id", sa.Integer, primary_key=True),
            sa.Column("material_code", sa.Text, nullable=False, unique=True),
            sa.Column("material_name", sa.Text, nullable=False),
            sa.Column("image_url", sa.Text, nullable=True),
            *_timestamps(),
        )

    if not insp.has_table("bom_lines"):
        op.create_table(
            "bom_lines",
            sa.Column("bom_line_id", sa.Integer, primary_key=True),
            sa.Column(
                "product_id",
                sa.Integer,
                sa.ForeignKey("products.product_id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "material_id",
                sa.Integer,
                sa.ForeignKey("materials.material_id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("consume_per_unit", sa.Numeric(18, 3), nullable=False, server_default="1"),
            *_timestamps(),
            sa.UniqueConstraint("product_id", "material_id", name="uq_bom_lines_product_material"),
            sa.CheckConstraint("consume_per_unit >= 0", name="ck_bom_lines_consume_per_unit"),
        )
        op.create_index("idx_bom_lines_product_id", "bom_lines", ["product_id"])
        op.create_index("idx_bom_lines_material_id", "bom_lines", ["material_id"])

    # 品目ごとに期首残高は1件のみ（UNIQUE制約でupsertの競合も防ぐ）
    if not insp.has_table("opening_balances"):
        op.create_table(
            "opening_balances",
            sa.Column("opening_balance_id", sa.Integer, primary_key=True),
            sa.Column("item_type", sa.String(1), nullable=False),
            sa.Column("item_id", sa.Integer, nullable=False),
            sa.Column("start_year", sa.Integer, nullable=False),
            sa.Column("start_week", sa.Integer, nullable=False),
            sa.Column("balance_qty", sa.Numeric(18, 3), nullable=False, server_default="0"),
            *_timestamps(),
            sa.UniqueConstraint("item_type", "item_id", name="uq_opening_balances_item"),
            sa.CheckConstraint("item_type IN ('P','M')", name="ck_opening_balances_item_type"),
            sa.CheckConstraint(
                "start_week >= 1 AND start_week <= 53", name="ck_opening_balances_start_week"
            ),
        )

    if not insp.has_table("sales_plans"):
        op.create_table(
            "sales_plans",
            sa.Column("sales_plan_id", sa.Integer, primary_key=True),
            sa.Column(
                "product_id",
                sa.Integer,
                sa.ForeignKey("products.product_id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("plan_year", sa.Integer, nullable=False),
            sa.Column("plan_week", sa.Integer, nullable=False),
            sa.Column("ship_qty", sa.Numeric(18, 3), nullable=False, server_default="0"),
            *_timestamps(),
            sa.UniqueConstraint(
                "product_id", "plan_year", "plan_week", name="uq_sales_plans_product_week"
            ),
            sa.CheckConstraint(
                "plan_week >= 1 AND plan_week <= 53", name="ck_sales_plans_plan_week"
            ),
        )

    if not insp.has_table("production_orders"):
        op.create_table(
            "production_orders",
            sa.Column("production_order_id", sa.Integer, primary_key=True),
            sa.Column(
                "product_id",
                sa.Integer,
                sa.ForeignKey("products.product_id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("quantity", sa.Numeric(18, 3), nullable=False),
            sa.Column("plan_year", sa.Integer, nullable=False),
            sa.Column("plan_week", sa.Integer, nullable=False),
            sa.Column("status", sa.Text, nullable=False, server_default="INITIAL"),
            *_timestamps(),
            sa.CheckConstraint(
                "plan_week >= 1 AND plan_week <= 53", name="ck_production_orders_plan_week"
            ),
        )
        op.create_index(
            "idx_production_orders_product_week",
            "production_orders",
            ["product_id", "plan_year", "plan_week"],
        )
        op.create_index("idx_production_orders_status", "production_orders", ["status"])

    if not insp.has_table("purchase_orders"):
        op.create_table(
            "purchase_orders",
            sa.Column("purchase_order_id", sa.Integer, primary_key=True),
            sa.Column("po_number", sa.Text, nullable=True),
            sa.Column("invoice_number", sa.Text, nullable=True),
            sa.Column("supplier_name", sa.Text, nullable=True),
            sa.Column("customer_code", sa.Text, nullable=True),
            sa.Column("warehouse_code", sa.Text, nullable=True),
            sa.Column("currency", sa.Text, nullable=False, server_default="VND"),
            sa.Column("invoice_date", sa.Text, nullable=True),
            sa.Column("total_amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
            sa.Column("status", sa.Text, nullable=False, server_default="INITIAL"),
            sa.Column("created_by", sa.Text, nullable=True),
            sa.Column("assigned_to", sa.Text, nullable=True),
            *_timestamps(),
        )
        op.create_index("idx_purchase_orders_status", "purchase_orders", ["status"])

    if not insp.has_table("purchase_order_lines"):
        op.create_table(
            "purchase_order_lines",
            sa.Column("purchase_order_line_id", sa.Integer, primary_key=True),
            sa.Column(
                "purchase_order_id",
                sa.Integer,
                sa.ForeignKey("purchase_orders.purchase_order_id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "material_id",
                sa.Integer,
                sa.ForeignKey("materials.material_id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("quantity", sa.Numeric(18, 3), nullable=False),
            sa.Column("unit", sa.Text, nullable=False, server_default="PCS"),
            sa.Column("unit_price", sa.Numeric(18, 2), nullable=False, server_default="0"),
            sa.Column("total_amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
            sa.Column("eta_year", sa.Integer, nullable=False),
            sa.Column("eta_week", sa.Integer, nullable=False),
            *_timestamps(),
            sa.CheckConstraint(
                "eta_week >= 1 AND eta_week <= 53", name="ck_purchase_order_lines_eta_week"
            ),
        )
        op.create_index(
            "idx_purchase_order_lines_material_id", "purchase_order_lines", ["material_id"]
        )
        op.create_index(
            "idx_purchase_order_lines_eta", "purchase_order_lines", ["eta_year", "eta_week"]
        )


def downgrade() -> None:
    op.drop_table("purchase_order_lines")
    op.drop_table("purchase_orders")
    op.drop_table("production_orders")
    op.drop_table("sales_plans")
    op.drop_table("opening_balances")
    op.drop_table("bom_lines")
    op.drop_table("materials")
    op.drop_table("products")
