"""Static rule-to-fix guidance table."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, NamedTuple, Optional


class RemediationHint(NamedTuple):
    title: str
    recommendation: str


DEFAULT_HINT = "Review the affected elements and apply the appropriate WCAG fix."

REMEDIATION_HINTS: Mapping[str, RemediationHint] = MappingProxyType({
    "color-contrast": RemediationHint(
        "Insufficient Color Contrast",
        "Increase the contrast ratio between text and background colors to meet WCAG AA "
        "minimum of 4.5:1 for normal text and 3:1 for large text.",
    ),
    "image-alt": RemediationHint(
        "Images Missing Alternative Text",
        'Add descriptive alt attributes to all meaningful images. Use empty alt="" for '
        "decorative images.",
    ),
    "label": RemediationHint(
        "Form Inputs Missing Labels",
        "Associate a <label> element with each form input using the 'for' attribute "
        "matching the input's 'id'.",
    ),
    "link-name": RemediationHint(
        "Links Without Accessible Names",
        "Ensure all links have descriptive text content, aria-label, or aria-labelledby attributes.",
    ),
    "button-name": RemediationHint(
        "Buttons Without Accessible Names",
        "Add visible text content, aria-label, or aria-labelledby to all button elements.",
    ),
    "html-has-lang": RemediationHint(
        "Page Missing Language Declaration",
        'Add a lang attribute to the <html> element (e.g., lang="en" for English).',
    ),
    "document-title": RemediationHint(
        "Page Missing Title",
        "Add a descriptive <title> element to the <head> of the document.",
    ),
    "heading-order": RemediationHint(
        "Incorrect Heading Hierarchy",
        "Ensure headings follow a logical order without skipping levels (h1 → h2 → h3).",
    ),
    "landmark-one-main": RemediationHint(
        "Missing Main Landmark",
        'Wrap the primary content area in a <main> element or add role="main" to the '
        "appropriate container.",
    ),
    "region": RemediationHint(
        "Content Outside Landmarks",
        "Ensure all visible content is contained within appropriate landmark regions.",
    ),
})


def get_remediation_hint(
    rule_id: str,
    hints: Optional[Mapping[str, RemediationHint]] = None,
) -> RemediationHint:
    """Hint for a rule; unknown rules get the rule id as title and the generic fix."""
    table = REMEDIATION_HINTS if hints is None else hints
    hint = table.get(rule_id)
    if hint is None:
        return RemediationHint(rule_id, DEFAULT_HINT)
    return hint
