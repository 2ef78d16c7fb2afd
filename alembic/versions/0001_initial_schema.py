"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


admin_role       = sa.Enum("admin", "staff", name="admin_role")
subunit_status   = sa.Enum("available", "reserved", "out_on_rent", "returned", "maintenance",
                           name="subunit_status")
note_type        = sa.Enum("maintenance", "blocked", "other", name="note_type")
extra_price_type = sa.Enum("per_day", "per_booking", name="extra_price_type")
discount_type    = sa.Enum("percentage", "fixed", name="discount_type")
booking_status   = sa.Enum("pending", "waiting_payment", "confirmed", "cancelled", "completed",
                           name="booking_status")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("role", admin_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_admin_users_email", "admin_users", ["email"], unique=True)

    op.create_table(
        "locations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("address", sa.String(255)),
        sa.Column("city", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("make", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer()),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("base_price_daily", sa.Numeric(10, 2), nullable=False),
        sa.Column("base_price_weekly", sa.Numeric(10, 2)),
        sa.Column("base_price_monthly", sa.Numeric(10, 2)),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_vehicles_category", "vehicles", ["category"])

    op.create_table(
        "vehicle_subunits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vehicle_id", sa.Integer(), sa.ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("license_plate", sa.String(20), nullable=False),
        sa.Column("vin", sa.String(32)),
        sa.Column("status", subunit_status, nullable=False),
        sa.Column("current_location_id", sa.Integer(), sa.ForeignKey("locations.id")),
        *_timestamps(),
    )
    op.create_index("ix_vehicle_subunits_vehicle_id", "vehicle_subunits", ["vehicle_id"])
    op.create_index("ix_vehicle_subunits_license_plate", "vehicle_subunits", ["license_plate"], unique=True)

    op.create_table(
        "availability_notes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("vehicle_id", sa.Integer(), sa.ForeignKey("vehicles.id", ondelete="CASCADE")),
        sa.Column("vehicle_subunit_id", sa.Integer(),
                  sa.ForeignKey("vehicle_subunits.id", ondelete="CASCADE")),
        sa.Column("note_date", sa.Date(), nullable=False),
        sa.Column("note_type", note_type, nullable=False),
        sa.Column("note", sa.Text()),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("admin_users.id")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("(vehicle_id IS NULL) <> (vehicle_subunit_id IS NULL)",
                           name="ck_availability_notes_single_target"),
    )
    op.create_index("ix_availability_notes_vehicle_id", "availability_notes", ["vehicle_id"])
    op.create_index("ix_availability_notes_vehicle_subunit_id", "availability_notes", ["vehicle_subunit_id"])
    op.create_index("ix_availability_notes_note_date", "availability_notes", ["note_date"])

    op.create_table(
        "customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(30), nullable=False),
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("license_number", sa.String(50)),
        sa.Column("license_country", sa.String(100)),
        sa.Column("license_expiry", sa.Date()),
        sa.Column("is_blacklisted", sa.Boolean(), nullable=False),
        sa.Column("blacklist_reason", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_customers_email", "customers", ["email"], unique=True)

    op.create_table(
        "extras",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("price_type", extra_price_type, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "coupons",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("discount_type", discount_type, nullable=False),
        sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
        sa.Column("valid_from", sa.Date()),
        sa.Column("valid_until", sa.Date()),
        sa.Column("usage_limit", sa.Integer()),
        sa.Column("usage_count", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_coupons_code", "coupons", ["code"], unique=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_number", sa.String(40), nullable=False),
        sa.Column("customer_id", sa.Integer(), sa.ForeignKey("customers.id"), nullable=False),
        sa.Column("vehicle_subunit_id", sa.Integer(), sa.ForeignKey("vehicle_subunits.id"), nullable=False),
        sa.Column("pickup_location_id", sa.Integer(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("dropoff_location_id", sa.Integer(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("pickup_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("dropoff_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("extras_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("coupon_code", sa.String(50)),
        sa.Column("notes", sa.Text()),
        sa.Column("payment_link", sa.String(500)),
        *_timestamps(),
    )
    op.create_index("ix_bookings_booking_number", "bookings", ["booking_number"], unique=True)
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_vehicle_subunit_id", "bookings", ["vehicle_subunit_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    op.create_table(
        "booking_extras",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("extra_id", sa.Integer(), sa.ForeignKey("extras.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("ix_booking_extras_booking_id", "booking_extras", ["booking_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("admin_user_id", sa.Integer(), sa.ForeignKey("admin_users.id")),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.Integer()),
        sa.Column("description", sa.Text()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ─── No two active bookings of one subunit may share an instant ──────────
    if op.get_context().dialect.name == "postgresql":
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE bookings
            ADD CONSTRAINT ex_bookings_subunit_no_overlap
            EXCLUDE USING gist (
                vehicle_subunit_id WITH =,
                tstzrange(pickup_date, dropoff_date, '[]') WITH &&
            )
            WHERE (status IN ('pending', 'waiting_payment', 'confirmed'))
            """
        )


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("booking_extras")
    op.drop_table("bookings")
    op.drop_table("coupons")
    op.drop_table("extras")
    op.drop_table("customers")
    op.drop_table("availability_notes")
    op.drop_table("vehicle_subunits")
    op.drop_table("vehicles")
    op.drop_table("locations")
    op.drop_table("admin_users")

    bind = op.get_bind()
    for enum_type in (booking_status, discount_type, extra_price_type, note_type,
                      subunit_status, admin_role):
        enum_type.drop(bind, checkfirst=True)
