"""Migration 001: Initial plugin store schema

Creates users, active_sessions, plugins, plugin_dependencies, releases and
plugin_stars.
"""

import sqlalchemy as sa
from alembic import op

from migrations.helpers import drop_table_if_exists

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("username", sa.String(15), nullable=False),
        sa.Column("email", sa.String(40), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("title", sa.String(50), nullable=False, server_default=sa.text("'New User'")),
        sa.Column("bio", sa.String(150), nullable=True),
        sa.Column("profile_picture", sa.String, nullable=True),
        sa.Column("is_supporter", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("preferences", sa.JSON, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "active_sessions",
        sa.Column("session_id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_active_sessions_user_id", "active_sessions", ["user_id"])

    op.create_table(
        "plugins",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(15), nullable=False),
        sa.Column("description", sa.String(300), nullable=True),
        sa.Column("license", sa.String(20), nullable=False),
        sa.Column("target_platform", sa.JSON, nullable=False),
        sa.Column("tags", sa.JSON, nullable=False),
        sa.Column("author_id", sa.String(36), nullable=False),
        sa.Column("fork_origin_id", sa.String(36), sa.ForeignKey("plugins.id", ondelete="SET NULL"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_plugins_name", "plugins", ["name"], unique=True)
    op.create_index("ix_plugins_author_id", "plugins", ["author_id"])
    op.create_index("ix_plugins_fork_origin_id", "plugins", ["fork_origin_id"])

    op.create_table(
        "plugin_dependencies",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "dependent_plugin_id", sa.String(36), sa.ForeignKey("plugins.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "dependency_plugin_id", sa.String(36), sa.ForeignKey("plugins.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("version", sa.String(20), nullable=True),
        sa.Column("is_optional", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("dependent_plugin_id", "dependency_plugin_id", name="uq_plugin_dependency_pair"),
    )
    op.create_index("ix_plugin_dependencies_dependent_plugin_id", "plugin_dependencies", ["dependent_plugin_id"])
    op.create_index("ix_plugin_dependencies_dependency_plugin_id", "plugin_dependencies", ["dependency_plugin_id"])

    op.create_table(
        "releases",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("plugin_id", sa.String(36), sa.ForeignKey("plugins.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version", sa.String(9), nullable=False),
        sa.Column("release_notes", sa.String(100), nullable=True),
        sa.Column("file_reference", sa.String, nullable=True),
        sa.Column("release_hash", sa.String(64), nullable=True),
        sa.Column("downloads", sa.Integer, nullable=False, server_default=sa.text("0")),
        *_timestamps(),
    )
    op.create_index("ix_releases_plugin_id", "releases", ["plugin_id"])

    op.create_table(
        "plugin_stars",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("plugin_id", sa.String(36), sa.ForeignKey("plugins.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "plugin_id", name="uq_plugin_star_user_plugin"),
    )
    op.create_index("ix_plugin_stars_user_id", "plugin_stars", ["user_id"])
    op.create_index("ix_plugin_stars_plugin_id", "plugin_stars", ["plugin_id"])


def downgrade() -> None:
    inspector = sa.inspect(op.get_bind())
    for table in ("plugin_stars", "releases", "plugin_dependencies", "plugins", "active_sessions", "users"):
        drop_table_if_exists(inspector, table)
