"""Add restricted inventory items, serial units and custody ledger

Revision ID: 0002_restricted_inventory
Revises: 0001_initial
Create Date: 2026-10-12 00:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0002_restricted_inventory"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

serial_unit_status = postgresql.ENUM(
    "in_stock",
    "issued",
    name="serial_unit_status",
    create_type=False,
)
custody_action = postgresql.ENUM(
    "issue",
    "return",
    name="custody_action",
    create_type=False,
)


def upgrade() -> None:
    bind = op.get_bind()
    serial_unit_status.create(bind, checkfirst=True)
    custody_action.create(bind, checkfirst=True)

    op.create_table(
        "restricted_inventory_items",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("item_code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=128), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )
    op.create_index(
        "ix_restricted_inventory_items_item_code",
        "restricted_inventory_items",
        ["item_code"],
        unique=True,
    )

    op.create_table(
        "restricted_serial_units",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("item_code", sa.String(length=64), nullable=False),
        sa.Column("serial_number", sa.String(length=128), nullable=False),
        sa.Column(
            "status",
            serial_unit_status,
            nullable=False,
            server_default=sa.text("'in_stock'"),
        ),
        sa.Column("issued_to_employee_id", sa.String(length=32), nullable=True),
        sa.Column("notes", sa.String(length=1000), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(
            ["item_code"],
            ["restricted_inventory_items.item_code"],
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["issued_to_employee_id"],
            ["employees.employee_id"],
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint("item_code", "serial_number", name="uq_restricted_serial_units_item_serial"),
        sa.CheckConstraint(
            "(status = 'issued' AND issued_to_employee_id IS NOT NULL)"
            " OR (status = 'in_stock' AND issued_to_employee_id IS NULL)",
            name="ck_restricted_serial_units_custody",
        ),
    )
    op.create_index(
        "ix_restricted_serial_units_item_code",
        "restricted_serial_units",
        ["item_code"],
        unique=False,
    )
    op.create_index(
        "ix_restricted_serial_units_issued_to_employee_id",
        "restricted_serial_units",
        ["issued_to_employee_id"],
        unique=False,
    )

    op.create_table(
        "restricted_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("item_code", sa.String(length=64), nullable=False),
        sa.Column("employee_id", sa.String(length=32), nullable=True),
        sa.Column("serial_unit_id", sa.Integer(), nullable=False),
        sa.Column("action", custody_action, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(
            ["serial_unit_id"],
            ["restricted_serial_units.id"],
            ondelete="RESTRICT",
        ),
    )
    op.create_index("ix_restricted_transactions_item_code", "restricted_transactions", ["item_code"], unique=False)
    op.create_index(
        "ix_restricted_transactions_employee_id",
        "restricted_transactions",
        ["employee_id"],
        unique=False,
    )
    op.create_index(
        "ix_restricted_transactions_serial_unit_id",
        "restricted_transactions",
        ["serial_unit_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_restricted_transactions_serial_unit_id", table_name="restricted_transactions")
    op.drop_index("ix_restricted_transactions_employee_id", table_name="restricted_transactions")
    op.drop_index("ix_restricted_transactions_item_code", table_name="restricted_transactions")
    op.drop_table("restricted_transactions")
    op.drop_index("ix_restricted_serial_units_issued_to_employee_id", table_name="restricted_serial_units")
    op.drop_index("ix_restricted_serial_units_item_code", table_name="restricted_serial_units")
    op.drop_table("restricted_serial_units")
    op.drop_index("ix_restricted_inventory_items_item_code", table_name="restricted_inventory_items")
    op.drop_table("restricted_inventory_items")

    bind = op.get_bind()
    custody_action.drop(bind, checkfirst=True)
    serial_unit_status.drop(bind, checkfirst=True)
