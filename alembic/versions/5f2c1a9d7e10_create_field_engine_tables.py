"""create field engine tables

Revision ID: 5f2c1a9d7e10
Revises:
Create Date: 2026-10-19 09:12:44.201733
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "5f2c1a9d7e10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def upgrade() -> None:
    op.create_table(
        "field_definitions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("field_key", sa.String(100), nullable=False, unique=True),
        sa.Column("module", sa.String(50), nullable=False),
        sa.Column("label", sa.String(200), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("options", JSONType, nullable=True),
        sa.Column("validation_rules", JSONType, nullable=True),
        sa.Column("default_value", JSONType, nullable=True),
        sa.Column("is_system_field", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "type IN ('text','number','date','select','boolean','textarea','signature','image')",
            name="ck_field_definitions_type",
        ),
    )
    op.create_index("ix_field_definitions_module", "field_definitions", ["module"])
    op.create_index("ix_field_definitions_owner_id", "field_definitions", ["owner_id"])

    op.create_table(
        "field_dependencies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "field_definition_id",
            sa.Integer(),
            sa.ForeignKey("field_definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("depends_on_field_key", sa.String(100), nullable=False),
        sa.Column("condition_type", sa.String(50), nullable=False),
        sa.Column("condition_value", JSONType, nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.CheckConstraint(
            "condition_type IN ('equals','not_equals','greater_than','less_than',"
            "'contains','in','not_in','is_empty','is_not_empty')",
            name="ck_field_dependencies_condition_type",
        ),
        sa.CheckConstraint(
            "action IN ('show','hide','enable','disable','set_required','set_optional')",
            name="ck_field_dependencies_action",
        ),
    )
    op.create_index("ix_field_dependencies_field_definition_id", "field_dependencies", ["field_definition_id"])
    op.create_index("ix_field_dependencies_depends_on_field_key", "field_dependencies", ["depends_on_field_key"])

    op.create_table(
        "custom_field_values",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(50), nullable=False),
        sa.Column(
            "field_definition_id",
            sa.Integer(),
            sa.ForeignKey("field_definitions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("value", JSONType, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "entity_type", "entity_id", "field_definition_id",
            name="uq_custom_field_values_entity_field",
        ),
    )
    op.create_index("ix_custom_field_values_entity", "custom_field_values", ["entity_type", "entity_id"])
    op.create_index("ix_custom_field_values_field_definition_id", "custom_field_values", ["field_definition_id"])

    op.create_table(
        "form_templates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("module", sa.String(50), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("base_fields", JSONType, nullable=False),
        sa.Column("custom_fields", JSONType, nullable=False),
        sa.Column("list_fields", JSONType, nullable=False),
        sa.Column("detail_fields", JSONType, nullable=False),
        sa.Column("field_groups", JSONType, nullable=False),
        sa.Column("validation_rules", JSONType, nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_form_templates_module_owner", "form_templates", ["module", "owner_id"])
    op.create_index("ix_form_templates_module_default", "form_templates", ["module", "owner_id", "is_default"])

    op.create_table(
        "module_field_configurations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("module", sa.String(50), nullable=False),
        sa.Column("field_key", sa.String(100), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column("visible", sa.Boolean(), nullable=True),
        sa.Column("editable", sa.Boolean(), nullable=True),
        sa.Column("required", sa.Boolean(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("module", "field_key", "owner_id", name="uq_module_field_configurations"),
    )
    op.create_index("ix_module_field_configurations_module", "module_field_configurations", ["module", "owner_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_owner_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(100), nullable=False),
        sa.Column("event_metadata", JSONType, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_index("ix_module_field_configurations_module", table_name="module_field_configurations")
    op.drop_table("module_field_configurations")
    op.drop_index("ix_form_templates_module_default", table_name="form_templates")
    op.drop_index("ix_form_templates_module_owner", table_name="form_templates")
    op.drop_table("form_templates")
    op.drop_index("ix_custom_field_values_field_definition_id", table_name="custom_field_values")
    op.drop_index("ix_custom_field_values_entity", table_name="custom_field_values")
    op.drop_table("custom_field_values")
    op.drop_index("ix_field_dependencies_depends_on_field_key", table_name="field_dependencies")
    op.drop_index("ix_field_dependencies_field_definition_id", table_name="field_dependencies")
    op.drop_table("field_dependencies")
    op.drop_index("ix_field_definitions_owner_id", table_name="field_definitions")
    op.drop_index("ix_field_definitions_module", table_name="field_definitions")
    op.drop_table("field_definitions")
