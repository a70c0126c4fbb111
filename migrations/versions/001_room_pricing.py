"""Create rooms, room_pricing_overrides and room_pricing_modifiers.

Revision ID: 001_room_pricing
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations

from pathlib import Path

from alembic import op

revision = "001_room_pricing"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    sql_path = Path(__file__).resolve().parents[1] / "sql" / "001_room_pricing.sql"
    conn = op.get_bind()
    conn.exec_driver_sql(sql_path.read_text(encoding="utf-8"))


def downgrade() -> None:
    conn = op.get_bind()
    conn.exec_driver_sql("DROP TABLE IF EXISTS room_pricing_modifiers;")
    conn.exec_driver_sql("DROP TABLE IF EXISTS room_pricing_overrides;")
    conn.exec_driver_sql("DROP TABLE IF EXISTS rooms;")
