from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from field_engine.db.base import Base, JSONType, utcnow


class CustomFieldValueRow(Base):
    __tablename__ = "custom_field_values"
    __table_args__ = (
        UniqueConstraint(
            "entity_type", "entity_id", "field_definition_id",
            name="uq_custom_field_values_entity_field",
        ),
        Index("ix_custom_field_values_entity", "entity_type", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # 'product', 'customer', 'sale', ...
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(50), nullable=False)
    field_definition_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("field_definitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # shape is not checked here; validation happens before the write
    value: Mapped[object] = mapped_column(JSONType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
