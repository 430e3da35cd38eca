"""
Helpers for Minecraft chat text.

Server descriptions arrive either as legacy strings with inline section-sign
formatting codes or as JSON chat components.
"""

import re
from typing import Union

FORMATTING_CODE_PATTERN = re.compile("§.?", re.DOTALL)


def strip_formatting(raw: str) -> str:
    """Remove every section-sign formatting code from a legacy string."""
    if not raw:
        return ""
    return FORMATTING_CODE_PATTERN.sub("", raw)


def flatten_component(component: Union[str, dict, list, None]) -> str:
    """
    Flatten a JSON chat component into its raw text.

    The ``text`` field of an object is followed by its ``extra`` children,
    recursively. Lists are concatenated. Any other type yields an empty string.
    """
    if component is None:
        return ""
    if isinstance(component, str):
        return component
    if isinstance(component, list):
        return "".join(flatten_component(part) for part in component)
    if not isinstance(component, dict):
        return ""

    text = component.get("text", "")
    parts = [text if isinstance(text, str) else ""]
    extra = component.get("extra")
    if isinstance(extra, list):
        parts.extend(flatten_component(part) for part in extra)
    return "".join(parts)
