"""users, quotations, quotation locks, audit log

Revision ID: 3c1d9a7e5b20
Revises:
Create Date: 2026-10-19 10:12:41.208315

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1d9a7e5b20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(name: str) -> bool:
    bind = op.get_bind()
    insp = sa.inspect(bind)
    return name in insp.get_table_names()


def upgrade() -> None:
    if not _has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column(
                "role",
                sa.Enum("admin", "editor", "viewer", name="userrole"),
                nullable=False,
            ),
            sa.Column("is_active", sa.Boolean(), nullable=False),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
            sa.Column("last_login_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not _has_table("quotations"):
        op.create_table(
            "quotations",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("quote_id", sa.String(length=32), nullable=False, unique=True),
            sa.Column(
                "user_id",
                sa.Integer(),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("project_name", sa.String(length=255), nullable=False),
            sa.Column("project_type", sa.String(length=64), nullable=True),
            sa.Column("client_name", sa.String(length=255), nullable=False),
            sa.Column("client_email", sa.String(length=255), nullable=True),
            sa.Column("client_phone", sa.String(length=64), nullable=True),
            sa.Column("project_address", sa.Text(), nullable=True),
            sa.Column(
                "build_type",
                sa.Enum("handmade", "factory", name="build_type_enum"),
                nullable=False,
            ),
            sa.Column(
                "status",
                sa.Enum(
                    "draft", "sent", "accepted", "rejected", "approved", "cancelled",
                    name="quotation_status_enum",
                ),
                nullable=False,
            ),
            sa.Column(
                "discount_type",
                sa.Enum("percent", "amount", name="discount_type_enum"),
                nullable=False,
            ),
            sa.Column("discount_value", sa.Numeric(10, 2), nullable=False),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
            sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        )
        op.create_index("ix_quotations_user_id", "quotations", ["user_id"])

    if not _has_table("quotation_locks"):
        op.create_table(
            "quotation_locks",
            sa.Column(
                "quotation_id",
                sa.Integer(),
                sa.ForeignKey("quotations.id", ondelete="CASCADE"),
                primary_key=True,
            ),
            sa.Column("holder_id", sa.String(length=64), nullable=False),
            sa.Column("holder_name", sa.String(length=255), nullable=False),
            sa.Column("acquired_at", sa.DateTime(), nullable=False),
            sa.Column("renewed_at", sa.DateTime(), nullable=False),
            sa.Column("expires_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_quotation_locks_expires_at", "quotation_locks", ["expires_at"])

    if not _has_table("audit_log"):
        op.create_table(
            "audit_log",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(length=64), nullable=False),
            sa.Column("user_email", sa.String(length=255), nullable=True),
            sa.Column(
                "section",
                sa.Enum("QUOTES", "LOCKS", name="audit_section_enum"),
                nullable=False,
            ),
            sa.Column(
                "action",
                sa.Enum("CREATE", "UPDATE", "DELETE", name="audit_action_enum"),
                nullable=False,
            ),
            sa.Column("target_id", sa.String(length=64), nullable=False),
            sa.Column("summary", sa.String(length=500), nullable=False),
            sa.Column("before_json", sa.Text(), nullable=True),
            sa.Column("after_json", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        )
        op.create_index("ix_audit_log_section_created", "audit_log", ["section", "created_at"])
        op.create_index("ix_audit_log_target", "audit_log", ["target_id"])


def downgrade() -> None:
    for name in ("audit_log", "quotation_locks", "quotations", "users"):
        if _has_table(name):
            op.drop_table(name)
