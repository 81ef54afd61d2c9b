"""Compliance template sources.

Each standard is a provider variant; the registry loads them once at start-up.
Adding a standard means adding a provider, not editing the scorer.
"""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

import httpx

from ..errors import TemplateConfigError
from ..models.compliance import ComplianceTemplate, LevelBand
from .loader import get_available_templates, load_template_file, parse_template_text

logger = logging.getLogger(__name__)

DEFAULT_LEVEL_BANDS = [
    LevelBand(min_score=90, label="Excellent"),
    LevelBand(min_score=75, label="Good"),
    LevelBand(min_score=60, label="Fair"),
]
DEFAULT_FALLBACK_LEVEL = "Poor"

WCAG_LEVEL_BANDS = [
    LevelBand(min_score=95, label="Full Compliance"),
    LevelBand(min_score=80, label="Substantial Compliance"),
    LevelBand(min_score=60, label="Partial Compliance"),
]
ADA_LEVEL_BANDS = [
    LevelBand(min_score=90, label="Low Risk"),
    LevelBand(min_score=70, label="Medium Risk"),
    LevelBand(min_score=50, label="High Risk"),
]

# standard name -> (bands, fallback label)
STANDARD_LEVELS: dict[str, tuple[list[LevelBand], str]] = {
    "WCAG": (WCAG_LEVEL_BANDS, "Non-Compliant"),
    "ADA": (ADA_LEVEL_BANDS, "Critical Risk"),
}


def levels_for_standard(standard: str) -> tuple[list[LevelBand], str]:
    """Level table for a standard, the generic one when it has none of its own."""
    return STANDARD_LEVELS.get(standard, (DEFAULT_LEVEL_BANDS, DEFAULT_FALLBACK_LEVEL))


@runtime_checkable
class TemplateProvider(Protocol):
    """Protocol that all template sources must implement."""

    template_id: str

    def load(self) -> ComplianceTemplate: ...


class PackagedTemplateProvider:
    """Base class for templates shipped inside the package."""

    template_id: str = ""
    resource_name: str = ""
    level_bands: list[LevelBand] = DEFAULT_LEVEL_BANDS
    fallback_level: str = DEFAULT_FALLBACK_LEVEL

    def load(self) -> ComplianceTemplate:
        source = resources.files("auditlens.compliance") / "templates" / self.resource_name
        template = parse_template_text(
            source.read_text(encoding="utf-8"),
            source=f"auditlens:{self.resource_name}",
            level_bands=self.level_bands,
            fallback_level=self.fallback_level,
        )
        if template.id != self.template_id:
            raise TemplateConfigError(
                f"{self.resource_name}: expected id {self.template_id!r}, got {template.id!r}"
            )
        return template


class WcagTemplateProvider(PackagedTemplateProvider):
    template_id = "wcag21_aa"
    resource_name = "wcag21_aa.yaml"
    level_bands, fallback_level = STANDARD_LEVELS["WCAG"]


class AdaTemplateProvider(PackagedTemplateProvider):
    template_id = "ada_compliance"
    resource_name = "ada_compliance.yaml"
    level_bands, fallback_level = STANDARD_LEVELS["ADA"]


class En301549TemplateProvider(PackagedTemplateProvider):
    template_id = "en301549"
    resource_name = "en301549.yaml"


class Section508TemplateProvider(PackagedTemplateProvider):
    template_id = "section508"
    resource_name = "section508.yaml"


BUILTIN_PROVIDERS: tuple[type[PackagedTemplateProvider], ...] = (
    WcagTemplateProvider,
    AdaTemplateProvider,
    En301549TemplateProvider,
    Section508TemplateProvider,
)


class FileTemplateProvider:
    """A template defined in a user YAML file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._template: Optional[ComplianceTemplate] = None

    @property
    def template_id(self) -> str:
        return self.load().id

    def load(self) -> ComplianceTemplate:
        if self._template is None:
            self._template = load_template_file(
                self.path,
                standard_levels=levels_for_standard,
            )
            logger.debug("Loaded template %s from %s", self._template.id, self.path)
        return self._template


class RemoteTemplateProvider:
    """A template fetched from a configuration service over HTTP.

    The document may be YAML or JSON. Pass ``client`` to reuse a session
    (or to inject a mock transport).
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.url = url
        self.client = client
        self.timeout = timeout
        self._template: Optional[ComplianceTemplate] = None

    @property
    def template_id(self) -> str:
        return self.load().id

    def _fetch(self) -> str:
        try:
            if self.client is not None:
                response = self.client.get(self.url)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(self.url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TemplateConfigError(f"{self.url}: could not fetch template: {e}") from e
        return response.text

    def load(self) -> ComplianceTemplate:
        if self._template is None:
            self._template = parse_template_text(
                self._fetch(),
                source=self.url,
                standard_levels=levels_for_standard,
            )
            logger.debug("Fetched template %s from %s", self._template.id, self.url)
        return self._template


def providers_from_dir(templates_dir: Path) -> list[FileTemplateProvider]:
    """One file provider per template document in a directory."""
    return [
        FileTemplateProvider(entry["path"])
        for entry in get_available_templates(templates_dir)
    ]
