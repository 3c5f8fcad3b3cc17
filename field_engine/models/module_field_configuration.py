from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from field_engine.db.base import Base, utcnow


class ModuleFieldConfigurationRow(Base):
    __tablename__ = "module_field_configurations"
    __table_args__ = (
        UniqueConstraint("module", "field_key", "owner_id", name="uq_module_field_configurations"),
        Index("ix_module_field_configurations_module", "module", "owner_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    module: Mapped[str] = mapped_column(String(50), nullable=False)
    field_key: Mapped[str] = mapped_column(String(100), nullable=False)
    # NULL: global row
    owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # NULL: not overridden at this level
    visible: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    editable: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    required: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    order: Mapped[int | None] = mapped_column("display_order", Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
