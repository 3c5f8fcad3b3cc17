from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from field_engine.db.base import Base, JSONType, utcnow


class FieldDefinitionRow(Base):
    __tablename__ = "field_definitions"
    __table_args__ = (
        CheckConstraint(
            "type IN ('text','number','date','select','boolean','textarea','signature','image')",
            name="ck_field_definitions_type",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # stable key used by custom_field_values lookups and templates
    field_key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    # a module name or 'global'
    module: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # select only: [{"label": "...", "value": ...}]
    options: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    # {"required": bool, "min": n, "max": n, "pattern": "..."}
    validation_rules: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    default_value: Mapped[object | None] = mapped_column(JSONType, nullable=True)

    is_system_field: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # NULL: shared by all owners
    owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
