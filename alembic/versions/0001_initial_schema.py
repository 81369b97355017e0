"""Initial schema: user accounts and refresh-token sessions.

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("username", sa.String(15), primary_key=True),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("membersince", sa.DateTime(timezone=True), nullable=False),
        sa.Column("admin", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "session",
        sa.Column("token", sa.String(1024), primary_key=True),
        sa.Column("expires", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "username",
            sa.String(15),
            sa.ForeignKey("user.username"),
            nullable=False,
        ),
    )
    op.create_index("ix_session_expires", "session", ["expires"])
    op.create_index("ix_session_username", "session", ["username"])


def downgrade() -> None:
    op.drop_index("ix_session_username", table_name="session")
    op.drop_index("ix_session_expires", table_name="session")
    op.drop_table("session")
    op.drop_table("user")
