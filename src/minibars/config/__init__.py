"""Configuration management for minibars."""

from .environment import EnvironmentSubstitutionError, substitute_environment_variables
from .loader import build_engine, load_template_dir, load_yaml_config
from .models import EngineConfig

__all__ = [
    "EngineConfig",
    "EnvironmentSubstitutionError",
    "build_engine",
    "load_template_dir",
    "load_yaml_config",
    "substitute_environment_variables",
]
