"""create snapshot, fill, closed trade, signal and logical trade tables

Revision ID: 20261001_create_tracker_tables
Revises:
Create Date: 2026-10-01 00:00:00.000000
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "20261001_create_tracker_tables"
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade():
    op.create_table(
        "bot_snapshots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cash", sa.Float(), nullable=True),
        sa.Column("equity", sa.Float(), nullable=True),
        sa.Column("open_pnl", sa.Float(), nullable=True),
        sa.Column("realized_pnl", sa.Float(), nullable=True),
        sa.Column("positions_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("raw", sa.JSON(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_bot_snapshots_ts", "bot_snapshots", ["ts"])

    op.create_table(
        "bot_fills",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("position_id", sa.String(128), nullable=False),
        sa.Column("symbol", sa.String(128), nullable=False),
        sa.Column("side", sa.String(16), nullable=True),
        sa.Column("event_type", sa.String(8), nullable=False),
        sa.Column("qty", sa.Float(), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("realized_pnl", sa.Float(), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=True),
        _created_at(),
        sa.UniqueConstraint("position_id", "event_type", "ts", name="uq_bot_fills_dedup"),
    )
    op.create_index("ix_bot_fills_ts", "bot_fills", ["ts"])
    op.create_index("ix_bot_fills_position_id", "bot_fills", ["position_id"])

    op.create_table(
        "bot_trades_closed",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("symbol", sa.String(128), nullable=False),
        sa.Column("side", sa.String(16), nullable=True),
        sa.Column("qty", sa.Float(), nullable=True),
        sa.Column("entry_price", sa.Float(), nullable=True),
        sa.Column("exit_price", sa.Float(), nullable=True),
        sa.Column("pnl", sa.Float(), nullable=True),
        sa.Column("fees", sa.Float(), nullable=False, server_default="0"),
        sa.Column("strategy", sa.String(64), nullable=True),
        _created_at(),
    )
    op.create_index("ix_bot_trades_closed_closed_at", "bot_trades_closed", ["closed_at"])
    op.create_index("ix_bot_trades_closed_symbol", "bot_trades_closed", ["symbol"])

    op.create_table(
        "tv_signals",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "received_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("type", sa.Text(), nullable=True),
        sa.Column("strategy", sa.Text(), nullable=True),
        sa.Column("symbol", sa.Text(), nullable=True),
        sa.Column("action", sa.Text(), nullable=True),
        sa.Column("timeframe", sa.Text(), nullable=True),
        sa.Column("signal_id", sa.Text(), nullable=True),
        sa.Column("bar_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("raw_payload", sa.JSON(), nullable=True),
    )
    op.create_index("ix_tv_signals_received_at", "tv_signals", ["received_at"])

    op.create_table(
        "tv_trades",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("strategy", sa.Text(), nullable=False),
        sa.Column("symbol", sa.Text(), nullable=False),
        sa.Column("timeframe", sa.Text(), nullable=False),
        sa.Column("direction", sa.String(8), nullable=False),
        sa.Column("entry_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("entry_price", sa.Float(), nullable=True),
        sa.Column("entry_signal_id", sa.Text(), nullable=True),
        sa.Column("exit_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("exit_price", sa.Float(), nullable=True),
        sa.Column("exit_signal_id", sa.Text(), nullable=True),
        sa.Column("pnl", sa.Float(), nullable=True),
        sa.Column("win", sa.Boolean(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_tv_trades_strategy", "tv_trades", ["strategy"])
    op.create_index("ix_tv_trades_symbol", "tv_trades", ["symbol"])

    # one open trade per (strategy, symbol, timeframe)
    op.create_index(
        "uq_tv_trades_open_key",
        "tv_trades",
        ["strategy", "symbol", "timeframe"],
        unique=True,
        postgresql_where=sa.text("exit_time IS NULL"),
        sqlite_where=sa.text("exit_time IS NULL"),
    )


def downgrade():
    op.drop_index("uq_tv_trades_open_key", table_name="tv_trades")
    op.drop_table("tv_trades")
    op.drop_table("tv_signals")
    op.drop_table("bot_trades_closed")
    op.drop_table("bot_fills")
    op.drop_table("bot_snapshots")
