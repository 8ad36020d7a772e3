"""whitelist and op tables

Revision ID: 0001_player_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001_player_tables"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "whitelist",
        sa.Column("uuid", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=64), nullable=True),
        sa.Column("whitelisted", sa.Boolean(create_constraint=False), nullable=False),
    )
    # op list table exists even when op syncing is off; it just stays empty
    op.create_table(
        "op",
        sa.Column("uuid", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=64), nullable=True),
        sa.Column("isOp", sa.Boolean(create_constraint=False), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("op")
    op.drop_table("whitelist")
