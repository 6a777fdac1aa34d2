"""initial_schema

Revision ID: 20260101_0000
Revises:
Create Date: 2026-01-01 00:00:00.000000+00:00

Creates every table of the job board from the model metadata so the
portable column types (GUID, StringList, JSON) and the shared enum types
(job_tier is used by jobs, plans and credit_ledger) come out the same as
in the models on PostgreSQL and SQLite.
"""
from alembic import op

from jobboard.database import Base
import jobboard.models  # noqa: F401


revision = '20260101_0000'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    Base.metadata.create_all(bind=op.get_bind(), checkfirst=True)


def downgrade() -> None:
    Base.metadata.drop_all(bind=op.get_bind())
