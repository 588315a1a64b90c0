"""Template rendering system for minibars."""

from .components import register_site_components
from .context import RenderContext, is_truthy, resolve_path
from .engine import TemplateEngine
from .helpers import DEFAULT_HELPERS, format_date, register_default_helpers
from .parser import TemplateParseError, parse
from .renderer import BatchRenderer, RenderResult
from .validator import TemplateValidator, ValidationLevel, ValidationResult

__all__ = [
    "TemplateEngine",
    "RenderContext",
    "resolve_path",
    "is_truthy",
    "TemplateParseError",
    "parse",
    "BatchRenderer",
    "RenderResult",
    "TemplateValidator",
    "ValidationResult",
    "ValidationLevel",
    "DEFAULT_HELPERS",
    "format_date",
    "register_default_helpers",
    "register_site_components",
]
