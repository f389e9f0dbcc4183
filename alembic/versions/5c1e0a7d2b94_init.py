"""init

Revision ID: 5c1e0a7d2b94
Revises:
Create Date: 2026-10-17 10:02:11.412093

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5c1e0a7d2b94"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "persons",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("national_id", sa.String(32), nullable=False),
        sa.Column("given_name", sa.String(255), nullable=False),
        sa.Column("family_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("position('@' IN email) > 0", name="persons_email_check"),
        sa.CheckConstraint("phone ~ '^[0-9]+$'", name="persons_phone_check"),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.String(32), nullable=False),
        sa.Column("client_url", sa.String(255), nullable=False),
        sa.Column("callback_url", sa.String(255), nullable=True),
        sa.Column("secret", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_clients_client_id", "clients", ["client_id"], unique=True)

    op.create_table(
        "person_app_link",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("person_id", sa.Integer, sa.ForeignKey("persons.id"), nullable=False),
        sa.Column("client_id", sa.Integer, sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("profile", sa.JSON, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_person_app_link_pair",
        "person_app_link",
        ["person_id", "client_id"],
        unique=True,
    )
    op.create_index("idx_person_app_link_client", "person_app_link", ["client_id"])

    # code is set while pending, token once redeemed; never both
    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(32), nullable=True),
        sa.Column("token", sa.String(255), nullable=True),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_sessions_code", "sessions", ["code"], unique=True)
    op.create_index("idx_sessions_token", "sessions", ["token"], unique=True)


def downgrade() -> None:
    op.drop_table("sessions")
    op.drop_table("person_app_link")
    op.drop_table("clients")
    op.drop_table("persons")
