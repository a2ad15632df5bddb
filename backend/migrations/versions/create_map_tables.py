"""Create samples, coverage, repeaters, senders, rx_samples and sample_archive.

Revision ID: c3f1a9d2e7b4
Revises:
Create Date: 2026-10-17
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "c3f1a9d2e7b4"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None

JSON_TYPE = sa.JSON().with_variant(JSONB, "postgresql")
EMPTY_LIST = sa.text("'[]'")


def upgrade() -> None:
    op.create_table(
        "samples",
        sa.Column("hash", sa.String(12), primary_key=True),
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rssi", sa.Float(), nullable=True),
        sa.Column("snr", sa.Float(), nullable=True),
        sa.Column("observed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("repeaters", JSON_TYPE, nullable=False, server_default=EMPTY_LIST),
    )
    op.create_index("ix_samples_time", "samples", ["time"])

    op.create_table(
        "coverage",
        sa.Column("hash", sa.String(12), primary_key=True),
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_observed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_heard", sa.DateTime(timezone=True), nullable=True),
        sa.Column("observed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("heard", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("lost", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("rssi", sa.Float(), nullable=True),
        sa.Column("snr", sa.Float(), nullable=True),
        sa.Column("repeaters", JSON_TYPE, nullable=False, server_default=EMPTY_LIST),
        sa.Column("entries", JSON_TYPE, nullable=False, server_default=EMPTY_LIST),
    )
    op.create_index("ix_coverage_time", "coverage", ["time"])

    op.create_table(
        "repeaters",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("hash", sa.String(12), primary_key=True),
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("elevation", sa.Float(), nullable=True),
    )
    op.create_index("ix_repeaters_time", "repeaters", ["time"])

    op.create_table(
        "senders",
        sa.Column("hash", sa.String(12), primary_key=True),
        sa.Column("name", sa.String(64), primary_key=True),
        sa.Column("time", sa.DateTime(timezone=True), primary_key=True),
    )
    op.create_index("ix_senders_hash", "senders", ["hash"])
    op.create_index("ix_senders_name", "senders", ["name"])
    op.create_index("ix_senders_time", "senders", ["time"])

    op.create_table(
        "rx_samples",
        sa.Column("hash", sa.String(12), primary_key=True),
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("samples", JSON_TYPE, nullable=False, server_default=EMPTY_LIST),
    )
    op.create_index("ix_rx_samples_time", "rx_samples", ["time"])

    op.create_table(
        "sample_archive",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("data", JSON_TYPE, nullable=False),
    )
    op.create_index("ix_sample_archive_time", "sample_archive", ["time"])


def downgrade() -> None:
    for table in ("sample_archive", "rx_samples", "senders", "repeaters", "coverage", "samples"):
        op.drop_table(table)
