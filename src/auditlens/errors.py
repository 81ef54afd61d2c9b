"""Exceptions raised by auditlens.

Only configuration problems are raised. Malformed scan data is recovered
inside the normalizer and degenerate inputs produce empty results.
"""

from __future__ import annotations


class AuditLensError(Exception):
    """Base class for all auditlens errors."""


class ConfigError(AuditLensError, ValueError):
    """Project configuration file could not be parsed."""


class TemplateConfigError(AuditLensError, ValueError):
    """A compliance template definition is malformed or inconsistent."""


class TemplateNotFoundError(AuditLensError, KeyError):
    """No compliance template is registered under the requested id."""

    def __init__(self, template_id: str, available: list[str] | None = None):
        self.template_id = template_id
        self.available = sorted(available or [])
        message = f"Unknown compliance template: {template_id}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class BenchmarkNotFoundError(AuditLensError, KeyError):
    """No benchmark cohort exists for the requested industry."""

    def __init__(self, industry: str, available: list[str] | None = None):
        self.industry = industry
        self.available = sorted(available or [])
        message = f"Industry benchmark not found: {industry}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]
