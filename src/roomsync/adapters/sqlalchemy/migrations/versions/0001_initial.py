"""Create communication and communication_user tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-09-14 10:12:00

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from alembic import op

if TYPE_CHECKING:
    from collections.abc import Sequence

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "communication",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("component", sa.String(length=100), nullable=False),
        sa.Column("instance_type", sa.String(length=100), nullable=False),
        sa.Column("instance_id", sa.Integer(), nullable=False),
        sa.Column("provider", sa.String(length=100), nullable=False),
        sa.Column("room_name", sa.String(length=255), nullable=True),
        sa.Column("room_topic", sa.String(), nullable=True),
        sa.Column("room_id", sa.String(length=255), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_communication")),
        sa.UniqueConstraint(
            "component",
            "instance_type",
            "instance_id",
            name="uq_communication_instance",
        ),
    )
    op.create_table(
        "communication_user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("communication_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "membership",
            sa.Enum(
                "confirmed",
                "pending_add",
                "pending_delete",
                name="membershiptype",
                native_enum=False,
                length=20,
            ),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["communication_id"],
            ["communication.id"],
            name=op.f("fk_communication_user_communication_id_communication"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_communication_user")),
        sa.UniqueConstraint(
            "communication_id",
            "user_id",
            name="uq_communication_user_member",
        ),
    )
    op.create_index(
        op.f("ix_communication_user_communication_id"),
        "communication_user",
        ["communication_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_communication_user_user_id"),
        "communication_user",
        ["user_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_communication_user_user_id"), table_name="communication_user")
    op.drop_index(
        op.f("ix_communication_user_communication_id"),
        table_name="communication_user",
    )
    op.drop_table("communication_user")
    op.drop_table("communication")
