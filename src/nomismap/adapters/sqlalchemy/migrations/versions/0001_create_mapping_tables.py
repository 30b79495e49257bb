"""create mapping tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _mapping_kind() -> sa.Enum:
    return sa.Enum(
        "MIGRATED",
        "NOMIS_CREATED",
        "DPS_CREATED",
        name="mappingkind",
        native_enum=False,
        length=30,
    )


def upgrade() -> None:
    op.create_table(
        "prisoner_mapping",
        sa.Column("dps_id", sa.String(length=64), nullable=False),
        sa.Column("nomis_id", sa.BigInteger(), nullable=False),
        sa.Column("label", sa.String(length=20), nullable=True),
        sa.Column("mapping_kind", _mapping_kind(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("dps_id", name="pk_prisoner_mapping"),
        sa.UniqueConstraint("nomis_id", name="uq_prisoner_mapping_nomis_id"),
    )
    op.create_index("ix_prisoner_mapping_label", "prisoner_mapping", ["label"])

    op.create_table(
        "csra_mapping",
        sa.Column("dps_csra_id", sa.String(length=64), nullable=False),
        sa.Column("nomis_booking_id", sa.BigInteger(), nullable=False),
        sa.Column("nomis_sequence", sa.Integer(), nullable=False),
        sa.Column("offender_no", sa.String(length=10), nullable=False),
        sa.Column("label", sa.String(length=20), nullable=True),
        sa.Column("mapping_kind", _mapping_kind(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("dps_csra_id", name="pk_csra_mapping"),
        sa.UniqueConstraint(
            "nomis_booking_id", "nomis_sequence", name="uq_csra_mapping_nomis_booking_id"
        ),
    )
    op.create_index("ix_csra_mapping_label", "csra_mapping", ["label"])
    op.create_index("ix_csra_mapping_offender_no", "csra_mapping", ["offender_no"])

    op.create_table(
        "non_association_mapping",
        sa.Column("non_association_id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("first_offender_no", sa.String(length=10), nullable=False),
        sa.Column("second_offender_no", sa.String(length=10), nullable=False),
        sa.Column("nomis_type_sequence", sa.Integer(), nullable=False),
        sa.Column("label", sa.String(length=20), nullable=True),
        sa.Column("mapping_kind", _mapping_kind(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("non_association_id", name="pk_non_association_mapping"),
        sa.UniqueConstraint(
            "first_offender_no",
            "second_offender_no",
            "nomis_type_sequence",
            name="uq_non_association_mapping_first_offender_no",
        ),
    )
    op.create_index(
        "ix_non_association_mapping_first_offender_no",
        "non_association_mapping",
        ["first_offender_no"],
    )
    op.create_index(
        "ix_non_association_mapping_second_offender_no",
        "non_association_mapping",
        ["second_offender_no"],
    )
    op.create_index("ix_non_association_mapping_label", "non_association_mapping", ["label"])


def downgrade() -> None:
    op.drop_index("ix_non_association_mapping_label", table_name="non_association_mapping")
    op.drop_index(
        "ix_non_association_mapping_second_offender_no", table_name="non_association_mapping"
    )
    op.drop_index(
        "ix_non_association_mapping_first_offender_no", table_name="non_association_mapping"
    )
    op.drop_table("non_association_mapping")
    op.drop_index("ix_csra_mapping_offender_no", table_name="csra_mapping")
    op.drop_index("ix_csra_mapping_label", table_name="csra_mapping")
    op.drop_table("csra_mapping")
    op.drop_index("ix_prisoner_mapping_label", table_name="prisoner_mapping")
    op.drop_table("prisoner_mapping")
