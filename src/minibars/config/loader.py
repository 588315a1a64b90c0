"""YAML configuration loader for minibars."""

import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from ..templates import TemplateEngine, register_site_components
from .environment import EnvironmentSubstitutionError, substitute_environment_variables
from .models import EngineConfig

logger = logging.getLogger(__name__)


def load_yaml_config(
    file_path: Union[str, Path],
    enable_env_substitution: bool = True,
    env_strict: bool = False,
) -> EngineConfig:
    """Load and validate a minibars YAML configuration file.

    Args:
        file_path: Path to the YAML configuration file
        enable_env_substitution: Whether to substitute environment variables
        env_strict: Whether environment variable substitution is strict

    Returns:
        Validated EngineConfig object

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the extension is wrong or the configuration is invalid
        yaml.YAMLError: If the YAML is invalid
        EnvironmentSubstitutionError: If environment variable substitution fails
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {path}. "
            f"Suggestion: Check the path or create the file."
        )

    if path.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(
            f"Invalid file extension: {path.suffix}. "
            f"Suggestion: Use .yaml or .yml extension for configuration files."
        )

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Configuration in {path} must be a mapping, got {type(data).__name__}"
        )

    if enable_env_substitution:
        try:
            data = substitute_environment_variables(data, strict=env_strict)
        except EnvironmentSubstitutionError as e:
            raise EnvironmentSubstitutionError(
                f"Environment variable substitution failed in {path}: {e}"
            ) from e

    return _process_config_data(data, path)


def _process_config_data(data: Dict[str, Any], path: Path) -> EngineConfig:
    try:
        config = EngineConfig(**data)
    except ValidationError as e:
        raise ValueError(f"Configuration validation failed for {path}:\n{e}") from e

    if config.template_dir is not None and not config.template_dir.is_absolute():
        config.template_dir = path.parent / config.template_dir

    logger.info(f"Loaded configuration {path}")
    return config


def load_template_dir(
    engine: TemplateEngine, directory: Union[str, Path], suffix: str = ".html"
) -> int:
    """Register every template file in a directory under its file stem.

    Args:
        engine: Engine to register templates with
        directory: Directory containing template files
        suffix: File suffix to pick up

    Returns:
        Number of templates registered

    Raises:
        ValueError: If the directory doesn't exist
    """
    dir_path = Path(directory)

    if not dir_path.is_dir():
        raise ValueError(
            f"Template directory not found: {dir_path}. "
            f"Suggestion: Create the directory or check the path."
        )

    count = 0
    for template_path in sorted(dir_path.glob(f"*{suffix}")):
        engine.register_template(
            template_path.stem, template_path.read_text(encoding="utf-8")
        )
        count += 1

    logger.info(f"Registered {count} template(s) from {dir_path}")
    return count


def build_engine(config: EngineConfig) -> TemplateEngine:
    """Create a TemplateEngine from configuration.

    Args:
        config: Validated engine configuration

    Returns:
        Engine with templates and components registered
    """
    engine = TemplateEngine(
        cache_size=config.cache_size, default_options=config.options
    )

    if config.site_components:
        register_site_components(engine)

    if config.template_dir is not None:
        load_template_dir(engine, config.template_dir, config.template_suffix)

    # Inline templates win over files with the same name
    for name, template in config.templates.items():
        engine.register_template(name, template)

    return engine
