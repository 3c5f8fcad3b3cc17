from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from field_engine.db.base import Base, JSONType


class FieldDependencyRow(Base):
    __tablename__ = "field_dependencies"
    __table_args__ = (
        CheckConstraint(
            "condition_type IN ('equals','not_equals','greater_than','less_than',"
            "'contains','in','not_in','is_empty','is_not_empty')",
            name="ck_field_dependencies_condition_type",
        ),
        CheckConstraint(
            "action IN ('show','hide','enable','disable','set_required','set_optional')",
            name="ck_field_dependencies_action",
        ),
    )

    # evaluation order key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    field_definition_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("field_definitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    depends_on_field_key: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    condition_type: Mapped[str] = mapped_column(String(50), nullable=False)
    condition_value: Mapped[object | None] = mapped_column(JSONType, nullable=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
