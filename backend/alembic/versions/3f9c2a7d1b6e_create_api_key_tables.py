"""create api key tables

Revision ID: 3f9c2a7d1b6e
Revises:
Create Date: 2026-10-19 10:12:41.532817

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b6e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("CREATE SCHEMA IF NOT EXISTS keymanager")

    op.create_table(
        "api_keys",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("owner_id", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("key_hash", sa.String(length=128), nullable=False),
        sa.Column("key_hint", sa.String(length=32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("expiry_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        sa.Column("updated_by", sa.String(length=100), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.String(length=100), nullable=True),
        schema="keymanager",
    )

    op.create_index(
        "ix_keymanager_api_keys_key_hash",
        "api_keys",
        ["key_hash"],
        unique=True,
        schema="keymanager",
    )
    op.create_index(
        "ix_keymanager_api_keys_owner_id",
        "api_keys",
        ["owner_id"],
        unique=False,
        schema="keymanager",
    )
    op.create_index(
        "ix_api_keys_owner_created",
        "api_keys",
        ["owner_id", "created_at"],
        unique=False,
        schema="keymanager",
    )

    op.create_table(
        "key_audit_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("subject_id", sa.String(length=100), nullable=False),
        sa.Column("action", sa.String(length=20), nullable=False),
        sa.Column("outcome", sa.String(length=20), nullable=False),
        sa.Column("reason_code", sa.String(length=50), nullable=True),
        sa.Column("extra", postgresql.JSONB(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        schema="keymanager",
    )

    op.create_index(
        "ix_keymanager_key_audit_logs_subject_id",
        "key_audit_logs",
        ["subject_id"],
        unique=False,
        schema="keymanager",
    )
    op.create_index(
        "ix_keymanager_key_audit_logs_timestamp",
        "key_audit_logs",
        ["timestamp"],
        unique=False,
        schema="keymanager",
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_keymanager_key_audit_logs_timestamp", table_name="key_audit_logs", schema="keymanager")
    op.drop_index("ix_keymanager_key_audit_logs_subject_id", table_name="key_audit_logs", schema="keymanager")
    op.drop_table("key_audit_logs", schema="keymanager")
    op.drop_index("ix_api_keys_owner_created", table_name="api_keys", schema="keymanager")
    op.drop_index("ix_keymanager_api_keys_owner_id", table_name="api_keys", schema="keymanager")
    op.drop_index("ix_keymanager_api_keys_key_hash", table_name="api_keys", schema="keymanager")
    op.drop_table("api_keys", schema="keymanager")
