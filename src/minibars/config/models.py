import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EngineConfig(BaseModel):
    """Configuration for a TemplateEngine built at application startup.

    Attributes:
        templates: Inline named templates, registered as given.
        template_dir: Directory whose files are registered as templates,
            each named after its file stem. Relative paths are resolved
            against the configuration file's directory by the loader.
        template_suffix: Suffix of the files picked up from template_dir.
        site_components: Register the site's card components
            (newsletterCard, meetingCard, resourceCard, glossaryTerm).
        cache_size: Number of parsed templates kept in the engine cache.
            0 disables caching.
        log_level: Level applied to the "minibars" logger by the CLI.
        options: Default render options, merged under per-call options.

    Example:
        EngineConfig(
            templates={"greeting": "Hello {{name}}!"},
            template_dir="templates",
            site_components=True,
        )
    """

    templates: Dict[str, str] = {}
    template_dir: Optional[Path] = None
    template_suffix: str = ".html"
    site_components: bool = True
    cache_size: int = Field(default=128, ge=0)
    log_level: str = "WARNING"
    options: Dict[str, Any] = {}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{value}'. Choose one of: {', '.join(LOG_LEVELS)}"
            )
        return level

    @field_validator("template_suffix")
    @classmethod
    def validate_template_suffix(cls, value: str) -> str:
        if not value.startswith("."):
            value = f".{value}"
        return value

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)
