from alembic import op
import sqlalchemy as sa

revision = "0001_users_and_parkings"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Replica of the external user directory; the API only reads it.
    op.create_table(
        "users",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
    )

    op.create_table(
        "parkings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(length=500), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("image", sa.String(length=500), nullable=True),

        sa.Column("publisher_id", sa.String(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reserved_by", sa.String(), sa.ForeignKey("users.id"), nullable=True),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("updated_by", sa.String(), nullable=True),

        sa.CheckConstraint(
            "(available AND reserved_by IS NULL) OR (NOT available AND reserved_by IS NOT NULL)",
            name="ck_parkings_reservation_state",
        ),
    )
    op.create_index("ix_parkings_publisher_id", "parkings", ["publisher_id"])


def downgrade():
    op.drop_index("ix_parkings_publisher_id", table_name="parkings")
    op.drop_table("parkings")
    op.drop_table("users")
