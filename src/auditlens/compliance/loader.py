"""Compliance template YAML loading.

Template documents use snake_case keys matching the models. A criterion's
``required`` key maps to ``required_for_compliance`` and an optional
``compliance_levels`` list becomes the template's level table.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import yaml
from pydantic import ValidationError

from ..errors import TemplateConfigError
from ..models.compliance import ComplianceTemplate, LevelBand

logger = logging.getLogger(__name__)


def _criterion_fields(raw: Any) -> Any:
    if isinstance(raw, dict) and "required" in raw:
        raw = dict(raw)
        raw.setdefault("required_for_compliance", raw.pop("required"))
    return raw


def parse_template(
    data: Any,
    source: str = "<template>",
    level_bands: list[LevelBand] | None = None,
    fallback_level: str | None = None,
    standard_levels: Callable[[str], tuple[list[LevelBand], str]] | None = None,
) -> ComplianceTemplate:
    """Validate a decoded template document.

    ``level_bands``/``fallback_level`` apply only when the document does not
    define its own ``compliance_levels``/``fallback_level``. Without either,
    ``standard_levels`` picks the table from the document's ``standard``.
    """
    if not isinstance(data, dict):
        raise TemplateConfigError(f"{source}: template must be a mapping")

    doc = dict(data)
    if level_bands is None and standard_levels is not None:
        level_bands, standard_fallback = standard_levels(str(doc.get("standard") or ""))
        if fallback_level is None:
            fallback_level = standard_fallback
    sections = []
    for section in doc.get("sections") or []:
        if isinstance(section, dict):
            section = dict(section)
            section["criteria"] = [
                _criterion_fields(c) for c in section.get("criteria") or []
            ]
        sections.append(section)
    doc["sections"] = sections
    # unquoted YAML versions (2.1, 2018) arrive as numbers
    if isinstance(doc.get("version"), (int, float)):
        doc["version"] = str(doc["version"])

    if "compliance_levels" in doc:
        doc["level_bands"] = doc.pop("compliance_levels") or []
    elif level_bands is not None:
        doc["level_bands"] = level_bands
    if "fallback_level" not in doc and fallback_level is not None:
        doc["fallback_level"] = fallback_level

    try:
        return ComplianceTemplate.model_validate(doc)
    except ValidationError as e:
        raise TemplateConfigError(f"{source}: invalid template: {e}") from e


def parse_template_text(text: str, source: str = "<template>", **kwargs: Any) -> ComplianceTemplate:
    """Parse YAML (or JSON, which is a YAML subset) template text."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise TemplateConfigError(f"{source}: could not parse template: {e}") from e
    return parse_template(data, source=source, **kwargs)


def load_template_file(path: Path, **kwargs: Any) -> ComplianceTemplate:
    """Load a single template file."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise TemplateConfigError(f"{path}: could not read template: {e}") from e
    return parse_template_text(text, source=str(path), **kwargs)


def get_available_templates(templates_dir: Path) -> list[dict]:
    """List template files under a directory without fully validating them."""
    templates: list[dict] = []

    if not templates_dir.exists():
        return templates

    for yaml_file in sorted(templates_dir.rglob("*.y*ml")):
        try:
            content = yaml.safe_load(yaml_file.read_text(encoding="utf-8-sig"))
        except (OSError, yaml.YAMLError) as e:
            logger.debug("Skipping unreadable template %s: %s", yaml_file, e)
            continue
        if isinstance(content, dict) and content.get("id"):
            templates.append({
                "id": content["id"],
                "name": content.get("name", ""),
                "standard": content.get("standard", ""),
                "version": str(content.get("version", "")),
                "description": content.get("description", ""),
                "path": yaml_file,
            })

    return templates
