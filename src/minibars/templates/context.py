"""Render context, path lookup and value coercion for minibars templates."""

import math
import re
from collections.abc import Mapping
from typing import Any, Dict, List, Tuple

HELPERS_KEY = "$helpers"
COMPONENTS_KEY = "$components"
OPTIONS_KEY = "$options"

LOOP_BINDINGS = ("this", "@index", "@first", "@last", "@odd", "@even")

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_ARG_RE = re.compile(r"\"[^\"]*\"|'[^']*'|\S+")
_KWARG_RE = re.compile(r"(\w+)=(\"[^\"]*\"|'[^']*'|[^=\s]+)")


class RenderContext(dict):
    """Mapping handed to every pass, helper and component during a render.

    Contexts are never mutated by the pipeline. Blocks that need new
    bindings derive a child with ``child()`` instead.
    """

    def child(self, overrides: Mapping) -> "RenderContext":
        """Return a shallow copy of this context with ``overrides`` applied."""
        derived = RenderContext(self)
        derived.update(overrides)
        return derived

    @property
    def helpers(self) -> Dict[str, Any]:
        return self.get(HELPERS_KEY) or {}

    @property
    def components(self) -> Dict[str, Any]:
        return self.get(COMPONENTS_KEY) or {}

    @property
    def options(self) -> Dict[str, Any]:
        return self.get(OPTIONS_KEY) or {}


def loop_bindings(item: Any, index: int, length: int) -> Dict[str, Any]:
    """Bindings exposed inside an ``{{#each}}`` body for one element."""
    return {
        "this": item,
        "@index": index,
        "@first": index == 0,
        "@last": index == length - 1,
        "@odd": index % 2 == 1,
        "@even": index % 2 == 0,
    }


def resolve_path(path: str, context: Any) -> Any:
    """Resolve a dotted path such as ``meeting.location.name``.

    Returns None as soon as an intermediate value is missing. Mappings are
    indexed by key, other objects by public attribute. ``length`` on a
    string or list gives its length.
    """
    current = context
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        elif part == "length" and isinstance(current, (str, list, tuple)):
            current = len(current)
        elif part.startswith("_"):
            return None
        else:
            current = getattr(current, part, None)
    return current


def is_truthy(value: Any) -> bool:
    """Truthiness used by ``{{#if}}`` blocks."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (list, tuple, str)):
        return len(value) > 0
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, Mapping):
        return True
    return bool(value)


def parse_literal(token: str, context: Any) -> Any:
    """Classify one argument token and resolve it.

    Quoted strings become str, numeric literals become int or float,
    ``true``/``false`` become bool and everything else is a path.
    """
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return token[1:-1]
    if _NUMBER_RE.match(token):
        number = float(token)
        return int(number) if number.is_integer() and "e" not in token.lower() else number
    if token == "true":
        return True
    if token == "false":
        return False
    return resolve_path(token, context)


def is_path(token: str) -> bool:
    """Whether an argument token is a path rather than a literal."""
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"'":
        return False
    return not _NUMBER_RE.match(token) and token not in ("true", "false")


def split_arguments(text: str) -> List[str]:
    """Split a helper expression into tokens, keeping quoted strings whole."""
    return _ARG_RE.findall(text)


def split_keyword_arguments(text: str) -> List[Tuple[str, str]]:
    """Split ``key=value key2="quoted value"`` into raw (key, token) pairs."""
    return _KWARG_RE.findall(text)


def parse_keyword_arguments(text: str, context: Any) -> Dict[str, Any]:
    """Parse keyword arguments left to right, resolving each value."""
    return {
        key: parse_literal(value, context)
        for key, value in split_keyword_arguments(text)
    }


def to_display_string(value: Any) -> str:
    """Stringify a value the way the site's pages expect to read it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join(to_display_string(item) for item in value)
    return str(value)


def to_number(value: Any) -> float:
    """Numeric coercion used by arithmetic and ordering helpers."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        if _NUMBER_RE.match(stripped):
            return float(stripped)
        return math.nan
    return math.nan


def unwrap_number(value: float) -> Any:
    """Collapse integral floats back to int so ``add 1 2`` reads ``3``."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value
