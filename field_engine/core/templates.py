from __future__ import annotations

import logging
from typing import Any

from field_engine.core.errors import TemplateNotFound
from field_engine.db.record_store import FORM_TEMPLATES, RecordStore
from field_engine.schemas.fields import FormTemplate, to_record

logger = logging.getLogger(__name__)

# synthetic template: the module's compiled-in fields, never stored
DEFAULT_TEMPLATE_ID = "default"


class FormTemplateService:
    """Stored form templates; at most one default per (module, owner)."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def get(self, template_id: int) -> FormTemplate:
        rec = self.store.read(FORM_TEMPLATES, template_id)
        if rec is None:
            raise TemplateNotFound(f"Form template not found: {template_id}", template_id=template_id)
        return FormTemplate.model_validate(rec)

    def list(
        self,
        module: str | None = None,
        owner_id: int | None = None,
        *,
        selectable_only: bool = False,
    ) -> list[FormTemplate]:
        """
        Templates of one owner (plus shared ones with owner_id None),
        sorted by order_index then id. Inactive templates are not
        selectable but stay readable for entities already using them.
        """
        filter: dict[str, Any] = {}
        if module is not None:
            filter["module"] = module
        out = []
        for rec in self.store.query(FORM_TEMPLATES, filter):
            t = FormTemplate.model_validate(rec)
            if owner_id is not None and t.owner_id not in (None, owner_id):
                continue
            if selectable_only and not t.is_active:
                continue
            out.append(t)
        return sorted(out, key=lambda t: (t.order_index, t.id))

    def get_default_template(self, module: str, owner_id: int | None = None) -> FormTemplate | None:
        for t in self.store.query(FORM_TEMPLATES, {"module": module, "owner_id": owner_id, "is_default": True}):
            return FormTemplate.model_validate(t)
        return None

    def create(self, template: FormTemplate) -> FormTemplate:
        with self.store.batch():
            if template.is_default:
                self._demote_defaults(template.module, template.owner_id)
            new_id = self.store.write(FORM_TEMPLATES, None, to_record(template, exclude={"id"}))
        logger.info("form template created id=%s module=%s owner=%s", new_id, template.module, template.owner_id)
        return self.get(new_id)

    def update(self, template_id: int, changes: dict[str, Any]) -> FormTemplate:
        current = self.get(template_id)
        changes = {k: v for k, v in changes.items() if k not in ("id", "created_at", "updated_at")}
        updated = FormTemplate.model_validate({**current.model_dump(), **changes, "id": template_id})

        with self.store.batch():
            if updated.is_default:
                self._demote_defaults(updated.module, updated.owner_id, keep_id=template_id)
            self.store.write(FORM_TEMPLATES, template_id, to_record(updated, exclude={"id"}))
        logger.info("form template updated id=%s fields=%s", template_id, sorted(changes))
        return self.get(template_id)

    def delete(self, template_id: int) -> None:
        if not self.store.delete(FORM_TEMPLATES, template_id):
            raise TemplateNotFound(f"Form template not found: {template_id}", template_id=template_id)
        logger.info("form template deleted id=%s", template_id)

    def _demote_defaults(self, module: str, owner_id: int | None, keep_id: int | None = None) -> None:
        for rec in self.store.query(FORM_TEMPLATES, {"module": module, "owner_id": owner_id, "is_default": True}):
            if rec["id"] == keep_id:
                continue
            t = FormTemplate.model_validate(rec).model_copy(update={"is_default": False})
            self.store.write(FORM_TEMPLATES, rec["id"], to_record(t, exclude={"id"}))
            logger.info("form template id=%s no longer default", rec["id"])
