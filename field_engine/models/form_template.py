from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from field_engine.db.base import Base, JSONType, utcnow


class FormTemplateRow(Base):
    __tablename__ = "form_templates"
    __table_args__ = (
        Index("ix_form_templates_module_owner", "module", "owner_id"),
        Index("ix_form_templates_module_default", "module", "owner_id", "is_default"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    module: Mapped[str] = mapped_column(String(50), nullable=False)
    owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # FieldDescriptor[] replacing the module's compiled-in fields
    base_fields: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    # field_key[] referencing field_definitions
    custom_fields: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    list_fields: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    detail_fields: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    # [{"group": "Basic Info", "fields": ["name", "price"]}]
    field_groups: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    validation_rules: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    # at most one default per (module, owner); enforced by the template service
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
