"""Create locations and suggestions tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial schema: submitted locations and the ideas voted on for them.
How:   PostgreSQL UUID keys generated server-side when not supplied,
       TIMESTAMP WITH TIME ZONE, ON DELETE CASCADE from suggestions to
       locations and a unique (idea, location_id) pair.

Rollback: downgrade() drops both tables.
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column(
            "image_key",
            sa.String(255),
            nullable=True,
            comment="Object name in the bucket: <id>.<extension>",
        ),
        sa.Column(
            "image_url",
            sa.Text(),
            nullable=True,
            comment="Public URL of the uploaded photo; NULL until the store write succeeds",
        ),
        sa.Column(
            "image_status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'pending'"),
            comment="Upload state: pending, attached",
        ),
        sa.Column(
            "approved",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_locations_approved", "locations", ["approved"])
    op.create_index("idx_locations_image_status", "locations", ["image_status"])

    op.create_table(
        "suggestions",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("idea", sa.Text(), nullable=False),
        sa.Column(
            "votes",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
            comment="Net votes; unbounded in both directions",
        ),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["location_id"],
            ["locations.id"],
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint("idea", "location_id", name="uq_suggestions_idea_location"),
    )


def downgrade() -> None:
    op.drop_table("suggestions")
    op.drop_index("idx_locations_image_status", table_name="locations")
    op.drop_index("idx_locations_approved", table_name="locations")
    op.drop_table("locations")
