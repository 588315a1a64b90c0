"""Tests for engine configuration models and loading."""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from pydantic import ValidationError

from minibars.config import (
    EngineConfig,
    EnvironmentSubstitutionError,
    build_engine,
    load_template_dir,
    load_yaml_config,
)
from minibars.templates import TemplateEngine


def write_config(directory: Path, data, name: str = "minibars.yaml") -> Path:
    path = directory / name
    path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data)
    return path


class TestEngineConfig:
    """Test the EngineConfig model."""

    def test_defaults(self):
        """Test default values."""
        config = EngineConfig()

        assert config.templates == {}
        assert config.template_dir is None
        assert config.template_suffix == ".html"
        assert config.site_components is True
        assert config.cache_size == 128
        assert config.log_level == "WARNING"
        assert config.options == {}

    def test_log_level_normalized(self):
        """Test that log levels are upper-cased."""
        config = EngineConfig(log_level="debug")
        assert config.log_level == "DEBUG"
        assert config.log_level_number == logging.DEBUG

    def test_invalid_log_level(self):
        """Test an unknown log level."""
        with pytest.raises(ValidationError, match="Invalid log level"):
            EngineConfig(log_level="chatty")

    def test_suffix_normalized(self):
        """Test that suffixes gain a leading dot."""
        assert EngineConfig(template_suffix="hbs").template_suffix == ".hbs"

    def test_negative_cache_size(self):
        """Test that cache_size must not be negative."""
        with pytest.raises(ValidationError):
            EngineConfig(cache_size=-1)


class TestLoadYamlConfig:
    """Test loading configuration files."""

    def test_load_config(self, tmp_path):
        """Test a complete configuration file."""
        path = write_config(
            tmp_path,
            {
                "templates": {"greeting": "Hi {{name}}"},
                "cache_size": 8,
                "log_level": "info",
                "options": {"lang": "en"},
            },
        )
        config = load_yaml_config(path)

        assert config.templates == {"greeting": "Hi {{name}}"}
        assert config.cache_size == 8
        assert config.log_level == "INFO"
        assert config.options == {"lang": "en"}

    def test_empty_file(self, tmp_path):
        """Test that an empty file gives the defaults."""
        path = write_config(tmp_path, "")
        assert load_yaml_config(path) == EngineConfig()

    def test_missing_file(self, tmp_path):
        """Test a missing file."""
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            load_yaml_config(tmp_path / "missing.yaml")

    def test_wrong_extension(self, tmp_path):
        """Test a file that is not YAML."""
        path = tmp_path / "config.json"
        path.write_text("{}")
        with pytest.raises(ValueError, match="Invalid file extension"):
            load_yaml_config(path)

    def test_not_a_mapping(self, tmp_path):
        """Test a YAML list at the top level."""
        path = write_config(tmp_path, "- a\n- b\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_yaml_config(path)

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML."""
        path = write_config(tmp_path, "templates: [unclosed\n")
        with pytest.raises(yaml.YAMLError, match="Failed to parse YAML"):
            load_yaml_config(path)

    def test_validation_error(self, tmp_path):
        """Test that model errors are reported as ValueError."""
        path = write_config(tmp_path, {"cache_size": "lots"})
        with pytest.raises(ValueError, match="Configuration validation failed"):
            load_yaml_config(path)

    def test_environment_substitution(self, tmp_path):
        """Test ${VAR} values in configuration."""
        path = write_config(
            tmp_path, "cache_size: ${MINIBARS_CACHE:-16}\noptions:\n  lang: ${SITE_LANG}\n"
        )
        with patch.dict(os.environ, {"SITE_LANG": "es"}):
            config = load_yaml_config(path)

        assert config.cache_size == 16
        assert config.options == {"lang": "es"}

    def test_environment_substitution_disabled(self, tmp_path):
        """Test loading without substitution."""
        path = write_config(tmp_path, "options:\n  lang: ${SITE_LANG}\n")
        config = load_yaml_config(path, enable_env_substitution=False)
        assert config.options == {"lang": "${SITE_LANG}"}

    def test_environment_substitution_failure(self, tmp_path):
        """Test that substitution errors name the file."""
        path = write_config(tmp_path, "options:\n  lang: ${SITE_LANG:?language required}\n")
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentSubstitutionError, match="minibars.yaml"):
                load_yaml_config(path)

    def test_relative_template_dir(self, tmp_path):
        """Test that template_dir is resolved against the config file."""
        path = write_config(tmp_path, {"template_dir": "templates"})
        config = load_yaml_config(path)
        assert config.template_dir == tmp_path / "templates"


class TestTemplateDirectory:
    """Test loading template directories."""

    def test_load_template_dir(self, tmp_path):
        """Test that files are registered under their stem."""
        (tmp_path / "header.html").write_text("<h1>{{title}}</h1>")
        (tmp_path / "footer.html").write_text("<footer></footer>")
        (tmp_path / "notes.txt").write_text("ignored")

        engine = TemplateEngine()
        count = load_template_dir(engine, tmp_path)

        assert count == 2
        assert set(engine.templates) == {"header", "footer"}
        assert engine.render("header", {"title": "Hi"}) == "<h1>Hi</h1>"

    def test_custom_suffix(self, tmp_path):
        """Test a different template suffix."""
        (tmp_path / "card.hbs").write_text("{{x}}")
        engine = TemplateEngine()
        assert load_template_dir(engine, tmp_path, ".hbs") == 1
        assert engine.templates == ("card",)

    def test_missing_directory(self, tmp_path):
        """Test a directory that does not exist."""
        with pytest.raises(ValueError, match="Template directory not found"):
            load_template_dir(TemplateEngine(), tmp_path / "missing")


class TestBuildEngine:
    """Test building an engine from configuration."""

    def test_build_engine(self, tmp_path):
        """Test a configuration with all sources."""
        templates = tmp_path / "templates"
        templates.mkdir()
        (templates / "greeting.html").write_text("File {{name}}")
        (templates / "page.html").write_text("<main>{{body}}</main>")

        config = EngineConfig(
            template_dir=templates,
            templates={"greeting": "Inline {{name}}"},
            cache_size=4,
            options={"lang": "en"},
        )
        engine = build_engine(config)

        assert engine.cache_size == 4
        assert engine.render("greeting", {"name": "Ann"}) == "Inline Ann"
        assert engine.render("page", {"body": "x"}) == "<main>x</main>"
        assert engine.render("{{$options.lang}}") == "en"
        assert "meetingCard" in engine.components

    def test_without_site_components(self):
        """Test disabling the site components."""
        engine = build_engine(EngineConfig(site_components=False))
        assert engine.components == ()
        assert "formatDate" in engine.helpers

    def test_from_file(self, tmp_path):
        """Test loading and building in one go."""
        (tmp_path / "templates").mkdir()
        (tmp_path / "templates" / "row.html").write_text("<td>{{v}}</td>")
        path = write_config(tmp_path, {"template_dir": "templates"})

        engine = build_engine(load_yaml_config(path))
        assert engine.render("row", {"v": 1}) == "<td>1</td>"
