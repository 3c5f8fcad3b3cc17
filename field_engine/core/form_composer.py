"""
Which fields a screen shows, in what order, with which flags.

Form view resolution:
  1. the module's compiled-in base fields
  2. a selected template with non-empty base_fields replaces them (no merge)
  3. the template's custom field references are appended in stored order
  4. template-level rule overrides are merged into each field's rules
  5. module field configuration (owner row > global row > field default)

List and detail views are subsets of the form view. When a template
declares no list/detail fields a short fixed subset is used instead of
every field, so list columns stay bounded.

An unknown or foreign template id falls back to the synthetic default
template; deleting a template never breaks entities that reference it.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from field_engine.core.config import settings
from field_engine.core.dependency_evaluator import evaluate
from field_engine.core.errors import TemplateNotFound
from field_engine.core.field_types import FormView
from field_engine.core.module_fields import (
    ModuleFieldConfigService,
    get_base_validator,
    get_module_base_fields,
)
from field_engine.core.registry import FieldRegistry
from field_engine.core.templates import DEFAULT_TEMPLATE_ID, FormTemplateService
from field_engine.core.validator_composer import collect_errors, compose
from field_engine.db.record_store import RecordStore
from field_engine.schemas.fields import (
    FieldDependency,
    FieldDescriptor,
    FieldRuntimeState,
    FormTemplate,
    ResolvedFieldGroup,
)

logger = logging.getLogger(__name__)

DETAIL_GROUP = "Details"
OTHER_GROUP = "Other"


class FormComposer:
    def __init__(
        self,
        store: RecordStore,
        *,
        registry: FieldRegistry | None = None,
        templates: FormTemplateService | None = None,
        module_config: ModuleFieldConfigService | None = None,
        default_view_fields: list[str] | None = None,
        default_view_limit: int | None = None,
    ) -> None:
        self.store = store
        self.registry = registry or FieldRegistry(store)
        self.templates = templates or FormTemplateService(store)
        self.module_config = module_config or ModuleFieldConfigService(store)
        self.default_view_fields = (
            default_view_fields if default_view_fields is not None else settings.default_view_fields_list
        )
        self.default_view_limit = (
            default_view_limit if default_view_limit is not None else settings.DEFAULT_VIEW_FIELD_LIMIT
        )

    # ------------------------------------------------------------------
    # template selection
    # ------------------------------------------------------------------

    def load_template(self, module: str, template_id, owner_id: int | None = None) -> FormTemplate | None:
        """None means the synthetic default template."""
        if template_id is None or template_id == DEFAULT_TEMPLATE_ID:
            return None
        try:
            template = self.templates.get(int(template_id))
        except (TemplateNotFound, ValueError):
            logger.warning("form template %r not found for module=%s, using default", template_id, module)
            return None

        if template.module != module:
            logger.warning("form template %s belongs to module=%s not %s, using default", template.id, template.module, module)
            return None
        if template.owner_id is not None and template.owner_id != owner_id:
            logger.warning("form template %s is not visible to owner=%s, using default", template.id, owner_id)
            return None
        return template

    # ------------------------------------------------------------------
    # form fields
    # ------------------------------------------------------------------

    def resolve_fields(self, module: str, template_id=None, owner_id: int | None = None) -> list[FieldDescriptor]:
        """
        Every field of the form (hidden ones included, flagged
        ``visible=False``), ordered.
        """
        template = self.load_template(module, template_id, owner_id)
        return self._resolve(module, template, owner_id)

    def _resolve(self, module: str, template: FormTemplate | None, owner_id: int | None) -> list[FieldDescriptor]:
        fields = get_module_base_fields(module)

        if template is not None:
            if template.base_fields:
                fields = [f.model_copy(deep=True) for f in template.base_fields]
            fields.extend(self._custom_fields(module, template, owner_id, {f.field_key for f in fields}))

            if template.validation_rules:
                fields = [
                    f.model_copy(update={"validation_rules": f.validation_rules.merged(template.validation_rules[f.field_key])})
                    if f.field_key in template.validation_rules
                    else f
                    for f in fields
                ]

        overrides = self.module_config.get(module, owner_id)
        return self.module_config.apply(fields, overrides)

    def _custom_fields(
        self,
        module: str,
        template: FormTemplate,
        owner_id: int | None,
        taken: set[str],
    ) -> list[FieldDescriptor]:
        out = []
        for key in template.custom_fields:
            definition = self.registry.get(key)
            if definition is None:
                logger.warning("template %s references missing field %s", template.id, key)
                continue
            if not definition.is_active or not definition.applies_to(module, owner_id):
                continue
            if key in taken:
                logger.warning("template %s custom field %s shadows a base field, skipped", template.id, key)
                continue
            taken.add(key)
            out.append(FieldDescriptor.from_definition(definition))
        return out

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------

    def resolve_view(
        self,
        module: str,
        template_id=None,
        view: FormView | str = FormView.FORM,
        owner_id: int | None = None,
    ) -> list[FieldDescriptor]:
        template = self.load_template(module, template_id, owner_id)
        visible = [f for f in self._resolve(module, template, owner_id) if f.visible]
        return self._view(FormView(view), template, visible)

    def _view(self, view: FormView, template: FormTemplate | None, visible: list[FieldDescriptor]) -> list[FieldDescriptor]:
        if view == FormView.FORM:
            return visible

        declared: list[str] = []
        if template is not None:
            if view == FormView.LIST:
                declared = list(template.list_fields)
            else:
                # list fields first, then detail-only fields
                declared = list(template.list_fields) + [
                    k for k in template.detail_fields if k not in template.list_fields
                ]

        by_key = {f.field_key: f for f in visible}
        if declared:
            return [by_key[k] for k in declared if k in by_key]
        return self._default_subset(visible)

    def _default_subset(self, visible: list[FieldDescriptor]) -> list[FieldDescriptor]:
        wanted = set(self.default_view_fields)
        picked = [f for f in visible if f.field_key in wanted][: self.default_view_limit]
        if picked:
            return picked
        return visible[: self.default_view_limit]

    def resolve_detail_groups(
        self,
        module: str,
        template_id=None,
        owner_id: int | None = None,
    ) -> list[ResolvedFieldGroup]:
        template = self.load_template(module, template_id, owner_id)
        visible = [f for f in self._resolve(module, template, owner_id) if f.visible]
        detail = self._view(FormView.DETAIL, template, visible)

        if template is None or not template.field_groups:
            return [ResolvedFieldGroup(group=DETAIL_GROUP, fields=detail)] if detail else []

        by_key = {f.field_key: f for f in visible}
        placed: set[str] = set()
        groups = []
        for g in template.field_groups:
            members = [by_key[k] for k in g.fields if k in by_key and k not in placed]
            placed.update(f.field_key for f in members)
            if members:
                groups.append(ResolvedFieldGroup(group=g.group, fields=members))

        rest = [f for f in detail if f.field_key not in placed]
        if rest:
            groups.append(ResolvedFieldGroup(group=OTHER_GROUP, fields=rest))
        return groups

    # ------------------------------------------------------------------
    # runtime state + validation over the resolved form
    # ------------------------------------------------------------------

    def dependencies_for(self, fields: list[FieldDescriptor]) -> list[FieldDependency]:
        ids = [f.definition_id for f in fields if f.definition_id is not None]
        if not ids:
            return []
        return self.registry.list_dependencies(ids)

    def evaluate(
        self,
        module: str,
        values: Mapping[str, Any],
        template_id=None,
        owner_id: int | None = None,
    ) -> dict[str, FieldRuntimeState]:
        fields = self.resolve_view(module, template_id, FormView.FORM, owner_id)
        return evaluate(fields, self.dependencies_for(fields), values)

    def build_validator(
        self,
        module: str,
        template_id=None,
        owner_id: int | None = None,
        *,
        base_validator: Callable[[Mapping[str, Any]], dict] | None = None,
        current_values: Mapping[str, Any] | None = None,
    ):
        # hidden fields included: their state drops built-in errors on them
        fields = self.resolve_fields(module, template_id, owner_id)
        return compose(
            base_validator or get_base_validator(module),
            fields,
            self.dependencies_for(fields),
            current_values,
        )

    def validate(
        self,
        module: str,
        values: Mapping[str, Any],
        template_id=None,
        owner_id: int | None = None,
    ) -> list[dict]:
        """Same checks as :meth:`build_validator`, keeping error codes."""
        fields = self.resolve_fields(module, template_id, owner_id)
        return collect_errors(
            fields,
            self.dependencies_for(fields),
            values,
            base_validator=get_base_validator(module),
        )


def initial_values(fields: list[FieldDescriptor]) -> dict[str, Any]:
    """Create-form defaults: field_key -> default_value (None when unset)."""
    return {f.field_key: f.default_value for f in fields}
