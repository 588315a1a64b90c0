"""Environment variable substitution for minibars configuration files.

String values may reference the environment as:

- ``${VAR}``: replaced when set, otherwise left as written (an error when
  strict)
- ``${VAR:default}`` or ``${VAR:-default}``: ``default`` when unset
- ``${VAR:?message}``: an error carrying ``message`` when unset

A value made of a single reference is coerced to bool, int or float when the
substituted text reads as one, so ``cache_size: ${CACHE:-64}`` validates as an
integer.
"""

import os
import re
from typing import Any, Union

_REFERENCE_RE = re.compile(r"\$\{(?P<name>[A-Za-z_]\w*)(?P<modifier>[:?-][^}]*)?\}")

_TRUE_WORDS = {"true", "yes", "on"}
_FALSE_WORDS = {"false", "no", "off"}


class EnvironmentSubstitutionError(Exception):
    """A configuration value references an environment variable that cannot be resolved."""


def substitute_environment_variables(value: Any, strict: bool = False) -> Any:
    """Substitute environment variables in a configuration value.

    Args:
        value: String, dict, list or primitive; containers are walked
        strict: Every referenced variable must be set, defaults are refused

    Returns:
        Value with environment variables substituted

    Raises:
        EnvironmentSubstitutionError: If a required variable is missing
    """
    if isinstance(value, dict):
        return {
            key: substitute_environment_variables(item, strict)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [substitute_environment_variables(item, strict) for item in value]
    if not isinstance(value, str) or "${" not in value:
        return value

    substituted = _REFERENCE_RE.sub(lambda match: _resolve(match, strict), value)
    if substituted != value and _REFERENCE_RE.fullmatch(value):
        return _coerce(substituted)
    return substituted


def _resolve(match: re.Match, strict: bool) -> str:
    name, modifier = match.group("name", "modifier")
    current = os.environ.get(name)
    if current is not None:
        return current

    hint = f"Suggestion: Set the variable with 'export {name}=value'"
    if modifier is None:
        if strict:
            raise EnvironmentSubstitutionError(
                f"Required environment variable '{name}' is not set. {hint}"
            )
        return match.group(0)

    if modifier.startswith(":?"):
        message = modifier[2:] or f"Variable {name} is required"
        raise EnvironmentSubstitutionError(f"{message}. {hint}")

    if not modifier.startswith(":"):
        raise EnvironmentSubstitutionError(
            f"Invalid environment variable syntax: {match.group(0)}. "
            "Supported formats: ${VAR}, ${VAR:default}, ${VAR:-default}, "
            "${VAR:?message}"
        )

    if strict:
        raise EnvironmentSubstitutionError(
            f"Environment variable '{name}' is not set and strict mode "
            f"does not allow its default. {hint}"
        )
    return modifier[2:] if modifier.startswith(":-") else modifier[1:]


def _coerce(text: str) -> Union[str, int, float, bool]:
    lowered = text.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    for number_type in (int, float):
        try:
            return number_type(text)
        except ValueError:
            continue
    return text
