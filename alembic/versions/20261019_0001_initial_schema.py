"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 10:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("USER", "ADMIN", "SUPER_ADMIN", name="role_enum", native_enum=False)
ad_status_enum = sa.Enum(
    "DRAFT",
    "PENDING_APPROVAL",
    "APPROVED",
    "REJECTED",
    "SUSPENDED",
    "EXPIRED",
    name="ad_status_enum",
    native_enum=False,
)
ad_condition_enum = sa.Enum("NEW", "LIKE_NEW", "USED", name="ad_condition_enum", native_enum=False)
category_type_enum = sa.Enum(
    "REAL_ESTATE",
    "VEHICLES",
    "SERVICES",
    "JOBS",
    "PERSONAL_HOME",
    "MISC",
    name="category_type_enum",
    native_enum=False,
)
moderation_action_enum = sa.Enum(
    "CREATE",
    "UPDATE",
    "DELETE",
    "APPROVE",
    "REJECT",
    "SUSPEND",
    "UNSUSPEND",
    name="moderation_action_enum",
    native_enum=False,
)
access_path_enum = sa.Enum("OWNER", "PERMISSION", "SYSTEM", name="access_path_enum", native_enum=False)
report_type_enum = sa.Enum("AD", "MESSAGE", name="report_type_enum", native_enum=False)
report_status_enum = sa.Enum(
    "PENDING",
    "REVIEWED",
    "RESOLVED",
    "DISMISSED",
    name="report_status_enum",
    native_enum=False,
)
notification_status_enum = sa.Enum("PENDING", "SENT", "FAILED", name="notification_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _deleted_col() -> sa.Column:
    return sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True)


def upgrade() -> None:
    op.create_table(
        "roles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", role_enum, nullable=False),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )

    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("is_blocked", sa.Boolean(), nullable=False),
        sa.Column("suspended_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], name="fk_users_role_id_roles", ondelete="RESTRICT"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "refresh_tokens",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token_id", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_refresh_tokens_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("token_id", name="uq_refresh_tokens_token_id"),
    )
    op.create_index("ix_refresh_tokens_token_id", "refresh_tokens", ["token_id"], unique=False)

    op.create_table(
        "permissions",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("resource", sa.String(length=64), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.UniqueConstraint("name", name="uq_permissions_name"),
    )
    op.create_index("ix_permissions_name", "permissions", ["name"], unique=False)

    op.create_table(
        "permission_grants",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("permission_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("granted_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_permission_grants_user_id_users",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["permission_id"],
            ["permissions.id"],
            name="fk_permission_grants_permission_id_permissions",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["granted_by_id"],
            ["users.id"],
            name="fk_permission_grants_granted_by_id_users",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("user_id", "permission_id", name="uq_permission_grants_user_id_permission_id"),
    )
    op.create_index("ix_permission_grants_user_id", "permission_grants", ["user_id"], unique=False)
    op.create_index("ix_permission_grants_permission_id", "permission_grants", ["permission_id"], unique=False)

    op.create_table(
        "categories",
        _id_col(),
        _created_col(),
        _updated_col(),
        _deleted_col(),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("icon", sa.String(length=64), nullable=True),
        sa.Column("category_type", category_type_enum, nullable=True),
        sa.Column("parent_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["parent_id"],
            ["categories.id"],
            name="fk_categories_parent_id_categories",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_categories_parent_id", "categories", ["parent_id"], unique=False)
    op.create_index("ix_categories_deleted_at", "categories", ["deleted_at"], unique=False)

    op.create_table(
        "ads",
        _id_col(),
        _created_col(),
        _updated_col(),
        _deleted_col(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("city_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", ad_status_enum, nullable=False),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("condition", ad_condition_enum, nullable=True),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column("is_premium", sa.Boolean(), nullable=False),
        sa.Column("show_email", sa.Boolean(), nullable=False),
        sa.Column("show_phone", sa.Boolean(), nullable=False),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("deleted_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint("price >= 0", name="ck_ads_price_non_negative"),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["categories.id"],
            name="fk_ads_category_id_categories",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_ads_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["deleted_by_id"], ["users.id"], name="fk_ads_deleted_by_id_users", ondelete="SET NULL"),
    )
    op.create_index("ix_ads_category_id", "ads", ["category_id"], unique=False)
    op.create_index("ix_ads_city_id", "ads", ["city_id"], unique=False)
    op.create_index("ix_ads_user_id", "ads", ["user_id"], unique=False)
    op.create_index("ix_ads_status", "ads", ["status"], unique=False)
    op.create_index("ix_ads_deleted_at", "ads", ["deleted_at"], unique=False)

    op.create_table(
        "moderation_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("ad_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", moderation_action_enum, nullable=False),
        sa.Column("from_status", ad_status_enum, nullable=True),
        sa.Column("to_status", ad_status_enum, nullable=False),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("actor_role", role_enum, nullable=False),
        sa.Column("permission_used", sa.String(length=128), nullable=True),
        sa.Column("access_path", access_path_enum, nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["ad_id"], ["ads.id"], name="fk_moderation_events_ad_id_ads", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["actor_id"],
            ["users.id"],
            name="fk_moderation_events_actor_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_moderation_events_ad_id", "moderation_events", ["ad_id"], unique=False)
    op.create_index("ix_moderation_events_action", "moderation_events", ["action"], unique=False)
    op.create_index("ix_moderation_events_actor_id", "moderation_events", ["actor_id"], unique=False)

    op.create_table(
        "audit_logs",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=128), nullable=False),
        sa.Column("entity_id", sa.String(length=128), nullable=True),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], name="fk_audit_logs_actor_id_users", ondelete="SET NULL"),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)

    op.create_table(
        "reports",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("type", report_type_enum, nullable=False),
        sa.Column("ad_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("message_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reporter_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", report_status_enum, nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("resolved_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["ad_id"], ["ads.id"], name="fk_reports_ad_id_ads", ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["reporter_id"], ["users.id"], name="fk_reports_reporter_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["resolved_by_id"],
            ["users.id"],
            name="fk_reports_resolved_by_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_reports_type", "reports", ["type"], unique=False)
    op.create_index("ix_reports_ad_id", "reports", ["ad_id"], unique=False)
    op.create_index("ix_reports_reporter_id", "reports", ["reporter_id"], unique=False)
    op.create_index("ix_reports_status", "reports", ["status"], unique=False)

    op.create_table(
        "notifications",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("ad_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("channel", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", notification_status_enum, nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_notifications_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["ad_id"], ["ads.id"], name="fk_notifications_ad_id_ads", ondelete="SET NULL"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_ad_id", "notifications", ["ad_id"], unique=False)
    op.create_index("ix_notifications_status", "notifications", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_status", table_name="notifications")
    op.drop_index("ix_notifications_ad_id", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_reports_status", table_name="reports")
    op.drop_index("ix_reports_reporter_id", table_name="reports")
    op.drop_index("ix_reports_ad_id", table_name="reports")
    op.drop_index("ix_reports_type", table_name="reports")
    op.drop_table("reports")

    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_actor_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_moderation_events_actor_id", table_name="moderation_events")
    op.drop_index("ix_moderation_events_action", table_name="moderation_events")
    op.drop_index("ix_moderation_events_ad_id", table_name="moderation_events")
    op.drop_table("moderation_events")

    op.drop_index("ix_ads_deleted_at", table_name="ads")
    op.drop_index("ix_ads_status", table_name="ads")
    op.drop_index("ix_ads_user_id", table_name="ads")
    op.drop_index("ix_ads_city_id", table_name="ads")
    op.drop_index("ix_ads_category_id", table_name="ads")
    op.drop_table("ads")

    op.drop_index("ix_categories_deleted_at", table_name="categories")
    op.drop_index("ix_categories_parent_id", table_name="categories")
    op.drop_table("categories")

    op.drop_index("ix_permission_grants_permission_id", table_name="permission_grants")
    op.drop_index("ix_permission_grants_user_id", table_name="permission_grants")
    op.drop_table("permission_grants")

    op.drop_index("ix_permissions_name", table_name="permissions")
    op.drop_table("permissions")

    op.drop_index("ix_refresh_tokens_token_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.drop_table("roles")
