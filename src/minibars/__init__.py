"""minibars - a small mustache-like HTML template engine."""

from .templates import TemplateEngine, register_site_components

__version__ = "0.1.0"

__all__ = ["TemplateEngine", "register_site_components", "__version__"]
