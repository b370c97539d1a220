"""Remember which backend holds a room so disabled rooms can be reused.

Revision ID: 0002_room_provider
Revises: 0001_initial
Create Date: 2026-10-18 09:40:00

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from alembic import op

if TYPE_CHECKING:
    from collections.abc import Sequence

revision: str = "0002_room_provider"
down_revision: str | None = "0001_initial"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    with op.batch_alter_table("communication") as batch_op:
        batch_op.add_column(sa.Column("room_provider", sa.String(length=100), nullable=True))
    # Existing rooms were created by the provider currently stored on the record.
    op.execute(
        "UPDATE communication SET room_provider = provider "
        "WHERE room_id IS NOT NULL AND provider != 'none'"
    )


def downgrade() -> None:
    with op.batch_alter_table("communication") as batch_op:
        batch_op.drop_column("room_provider")
