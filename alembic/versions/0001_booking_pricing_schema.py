from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = "0001_booking_pricing_schema"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(12, 2)


def _has_table(inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)

    if not _has_table(inspector, "tenants"):
        op.create_table(
            "tenants",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("slug", sa.String(), nullable=False),
            sa.Column("custom_domain", sa.String(), nullable=True),
            sa.Column("default_currency", sa.String(length=3), nullable=False, server_default="INR"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)
        op.create_index("ix_tenants_custom_domain", "tenants", ["custom_domain"], unique=True)

    if not _has_table(inspector, "properties"):
        op.create_table(
            "properties",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("name", sa.String(length=160), nullable=False),
            sa.Column("location", sa.String(length=160), nullable=True),
            sa.Column("nightly_rate", MONEY, nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False, server_default="INR"),
            sa.Column("max_guests", sa.Integer(), nullable=True),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        )
        op.create_index("ix_properties_tenant_id", "properties", ["tenant_id"], unique=False)

    if not _has_table(inspector, "coupons"):
        op.create_table(
            "coupons",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("code", sa.String(length=64), nullable=False),
            sa.Column("title", sa.String(length=160), nullable=True),
            sa.Column("discount_type", sa.String(length=20), nullable=False),
            sa.Column("discount_value", MONEY, nullable=False),
            sa.Column("min_order_amount", MONEY, nullable=True),
            sa.Column("max_discount_amount", MONEY, nullable=True),
            sa.Column("max_uses", sa.Integer(), nullable=True),
            sa.Column("used_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("terms_and_conditions", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("tenant_id", "code", name="uq_coupons_tenant_code"),
            sa.CheckConstraint("used_count >= 0", name="ck_coupons_used_count_positive"),
        )
        op.create_index("ix_coupons_tenant_id", "coupons", ["tenant_id"], unique=False)

    if not _has_table(inspector, "bookings"):
        op.create_table(
            "bookings",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("property_id", sa.Integer(), sa.ForeignKey("properties.id"), nullable=False),
            sa.Column("guest_name", sa.String(length=160), nullable=False),
            sa.Column("guest_email", sa.String(length=254), nullable=False),
            sa.Column("guest_phone", sa.String(length=30), nullable=True),
            sa.Column("guest_count", sa.Integer(), nullable=False),
            sa.Column("check_in", sa.Date(), nullable=False),
            sa.Column("check_out", sa.Date(), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="confirmed"),
            sa.Column("nights", sa.Integer(), nullable=False),
            sa.Column("nightly_rate", MONEY, nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False, server_default="INR"),
            sa.Column("subtotal", MONEY, nullable=False),
            sa.Column("service_fee", MONEY, nullable=False),
            sa.Column("discount_amount", MONEY, nullable=False, server_default="0"),
            sa.Column("final_total", MONEY, nullable=False),
            sa.Column("loyalty_points_earned", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("coupon_code", sa.String(length=64), nullable=True),
            sa.Column("coupon_status", sa.String(length=20), nullable=True),
            sa.Column("coupon_failure_reason", sa.String(length=40), nullable=True),
            sa.Column("payment_provider", sa.String(length=30), nullable=True),
            sa.Column("payment_id", sa.String(length=120), nullable=True),
            sa.Column("amount_paid", MONEY, nullable=True),
            sa.Column("special_requests", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("payment_id", name="uq_bookings_payment_id"),
        )
        op.create_index("ix_bookings_tenant_id", "bookings", ["tenant_id"], unique=False)
        op.create_index("ix_bookings_property_id", "bookings", ["property_id"], unique=False)
        op.create_index("ix_bookings_guest_email", "bookings", ["guest_email"], unique=False)

    if not _has_table(inspector, "coupon_redemptions"):
        op.create_table(
            "coupon_redemptions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("coupon_id", sa.Integer(), sa.ForeignKey("coupons.id"), nullable=False),
            sa.Column("coupon_code", sa.String(length=64), nullable=False),
            sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=False),
            sa.Column("guest_email", sa.String(length=254), nullable=True),
            sa.Column("guest_name", sa.String(length=160), nullable=True),
            sa.Column("order_amount", MONEY, nullable=False),
            sa.Column("discount_amount", MONEY, nullable=False),
            sa.Column("redeemed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("coupon_id", "booking_id", name="uq_coupon_redemptions_coupon_booking"),
        )
        for column in ("tenant_id", "coupon_id", "booking_id", "guest_email"):
            op.create_index(f"ix_coupon_redemptions_{column}", "coupon_redemptions", [column], unique=False)

    if not _has_table(inspector, "loyalty_accounts"):
        op.create_table(
            "loyalty_accounts",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("tenant_id", sa.Integer(), sa.ForeignKey("tenants.id"), nullable=False),
            sa.Column("guest_email", sa.String(length=254), nullable=False),
            sa.Column("guest_name", sa.String(length=160), nullable=True),
            sa.Column("tier", sa.String(length=20), nullable=False, server_default="bronze"),
            sa.Column("points_balance", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("jewels_balance", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("lifetime_points_earned", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("lifetime_jewels_redeemed", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("tenant_id", "guest_email", name="uq_loyalty_accounts_tenant_email"),
        )
        op.create_index("ix_loyalty_accounts_tenant_id", "loyalty_accounts", ["tenant_id"], unique=False)

    if not _has_table(inspector, "loyalty_transactions"):
        op.create_table(
            "loyalty_transactions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("account_id", sa.Integer(), sa.ForeignKey("loyalty_accounts.id"), nullable=False),
            sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id"), nullable=True),
            sa.Column("type", sa.String(length=20), nullable=False),
            sa.Column("points", sa.Integer(), nullable=False),
            sa.Column("jewels", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("description", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
            sa.UniqueConstraint("account_id", "booking_id", "type", name="uq_loyalty_transactions_booking_type"),
        )
        op.create_index("ix_loyalty_transactions_account_id", "loyalty_transactions", ["account_id"], unique=False)
        op.create_index("ix_loyalty_transactions_booking_id", "loyalty_transactions", ["booking_id"], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    for table_name in (
        "loyalty_transactions",
        "loyalty_accounts",
        "coupon_redemptions",
        "bookings",
        "coupons",
        "properties",
        "tenants",
    ):
        if _has_table(inspector, table_name):
            op.drop_table(table_name)
