"""Left-to-right → right-to-left stylesheet mirroring."""
from __future__ import annotations

import re

_DECLARATION = re.compile(r"(?P<prop>-?[A-Za-z][\w-]*)(?P<sep>\s*:\s*)(?P<value>[^;{}]+)(?=[;}])")
_SIDES = re.compile(r"\b(left|right)\b")
_DIRECTION = re.compile(r"\b(ltr|rtl)\b")
_IMPORTANT = re.compile(r"\s*!important\s*$")

_FOUR_SIDED = frozenset(
    {"margin", "padding", "border-width", "border-style", "border-color", "inset"}
)
_SWAP = {"left": "right", "right": "left", "ltr": "rtl", "rtl": "ltr"}


def _swap(match: re.Match[str]) -> str:
    return _SWAP[match.group(1)]


def _mirror_value(prop: str, value: str) -> str:
    important = _IMPORTANT.search(value)
    suffix = important.group(0) if important else ""
    core = value[: important.start()] if important else value
    trailing = core[len(core.rstrip()):]
    parts = core.split()

    if prop in _FOUR_SIDED and len(parts) == 4:
        top, right, bottom, left = parts
        return " ".join([top, left, bottom, right]) + trailing + suffix
    if prop == "border-radius" and len(parts) == 4 and "/" not in core:
        top_left, top_right, bottom_right, bottom_left = parts
        return " ".join([top_right, top_left, bottom_left, bottom_right]) + trailing + suffix
    if prop == "direction":
        return _DIRECTION.sub(_swap, value)
    return _SIDES.sub(_swap, value)


def _mirror_declaration(match: re.Match[str]) -> str:
    prop, sep, value = match.group("prop"), match.group("sep"), match.group("value")
    if "url(" in value:
        return _SIDES.sub(_swap, prop) + sep + value
    mirrored_value = _mirror_value(prop.lower(), value)
    return _SIDES.sub(_swap, prop) + sep + mirrored_value


def mirror_css(css: str) -> str:
    """Return *css* with horizontal directions mirrored.

    Swaps ``left``/``right`` in property names and values, ``ltr``/``rtl``
    in ``direction``, and reorders four-value ``margin``/``padding``/border
    shorthands and ``border-radius``. Values containing ``url(`` keep their
    value untouched.
    """
    return _DECLARATION.sub(_mirror_declaration, css)
