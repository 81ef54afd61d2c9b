"""Read-only registry of compliance templates."""

from __future__ import annotations

import functools
import logging
from types import MappingProxyType
from typing import Iterable, Mapping

from ..errors import TemplateConfigError, TemplateNotFoundError
from ..models.compliance import ComplianceTemplate
from .providers import BUILTIN_PROVIDERS, TemplateProvider

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """Templates loaded once from a set of providers.

    The mapping is immutable after construction, so one registry can be
    shared across threads and requests.
    """

    def __init__(self, providers: Iterable[TemplateProvider] = ()):
        self._providers: tuple[TemplateProvider, ...] = tuple(providers)
        templates: dict[str, ComplianceTemplate] = {}
        for provider in self._providers:
            template = provider.load()
            if template.id in templates:
                raise TemplateConfigError(f"Duplicate compliance template id: {template.id}")
            templates[template.id] = template
        self._templates: Mapping[str, ComplianceTemplate] = MappingProxyType(templates)
        logger.info("Loaded %d compliance templates", len(templates))

    def get(self, template_id: str) -> ComplianceTemplate:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFoundError(template_id, list(self._templates)) from None

    def ids(self) -> list[str]:
        return list(self._templates)

    def templates(self) -> list[ComplianceTemplate]:
        return list(self._templates.values())

    def with_providers(self, *providers: TemplateProvider) -> "TemplateRegistry":
        """A new registry with extra providers appended."""
        return TemplateRegistry(self._providers + providers)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)


@functools.lru_cache(maxsize=1)
def default_registry() -> TemplateRegistry:
    """The packaged standards, built once per process."""
    return TemplateRegistry(cls() for cls in BUILTIN_PROVIDERS)
