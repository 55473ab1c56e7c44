"""Placeholder substitution for naming templates like ``{artist}/{album}``."""
from __future__ import annotations

import re
from typing import Mapping, Optional, Union


TemplateValue = Optional[Union[str, int, float]]

PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def format_template(template: str, values: Mapping[str, TemplateValue]) -> str:
    """Substitute ``{key}`` placeholders with values.

    Keys missing from ``values`` are left verbatim. A value of None becomes
    the empty string. Substitution is a single pass, so substituted text is
    never expanded again and key order cannot change the result.

    Args:
        template: Pattern string, e.g. ``"{track} - {title}"``.
        values: Mapping of placeholder name to value.

    Returns:
        Formatted string.
    """
    if not template:
        return ""

    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in values:
            return match.group(0)
        value = values[key]
        return "" if value is None else str(value)

    return PLACEHOLDER.sub(substitute, template)


def template_placeholders(template: str) -> list[str]:
    """Placeholder names in order of first appearance."""
    seen: list[str] = []
    for name in PLACEHOLDER.findall(template or ""):
        if name not in seen:
            seen.append(name)
    return seen
