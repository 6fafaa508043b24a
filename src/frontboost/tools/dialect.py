"""Sass (SCSS syntax) to Less source conversion for theme files.

Covers the constructs theme variable files use: variables, ``!default``
flags, mixin definitions and inclusions, ``#{}`` interpolation, and a few
colour helpers whose names differ between the two dialects. Anything else is
passed through verbatim.
"""
from __future__ import annotations

import re

_DEFAULT_FLAG = re.compile(r"\s*!default\b")
_MIXIN_DEF = re.compile(r"@mixin\s+([\w-]+)\s*(\([^)]*\))?\s*\{")
_INCLUDE = re.compile(r"@include\s+([\w-]+)\s*(\([^)]*\))?\s*;")
_INTERPOLATION = re.compile(r"#\{\$([\w-]+)\}")
_VARIABLE = re.compile(r"\$([\w-]+)")
_EXTEND = re.compile(r"@extend\s+([^;]+);")

_FUNCTIONS = {
    "adjust-hue(": "spin(",
    "transparentize(": "fadeout(",
    "opacify(": "fadein(",
}


def _mixin_def(match: re.Match[str]) -> str:
    name, args = match.group(1), match.group(2) or "()"
    return f".{name}{args} {{"


def _include(match: re.Match[str]) -> str:
    name, args = match.group(1), match.group(2) or "()"
    return f".{name}{args};"


def scss_to_less(source: str) -> str:
    """Convert SCSS source text to Less."""
    text = _DEFAULT_FLAG.sub("", source)
    text = _MIXIN_DEF.sub(_mixin_def, text)
    text = _INCLUDE.sub(_include, text)
    text = _EXTEND.sub(lambda m: f"&:extend({m.group(1).strip()});", text)
    text = _INTERPOLATION.sub(lambda m: f"@{{{m.group(1)}}}", text)
    text = _VARIABLE.sub(lambda m: f"@{m.group(1)}", text)
    for scss_name, less_name in _FUNCTIONS.items():
        text = text.replace(scss_name, less_name)
    return text
