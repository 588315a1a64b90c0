"""Tests for environment variable substitution functionality."""

import os
from unittest.mock import patch

import pytest

from minibars.config.environment import (
    EnvironmentSubstitutionError,
    substitute_environment_variables,
)


class TestEnvironmentSubstitution:
    """Test environment variable substitution."""

    def test_substitute_simple_variable(self):
        """Test simple variable substitution."""
        with patch.dict(os.environ, {"TEST_VAR": "test_value"}):
            assert substitute_environment_variables("${TEST_VAR}") == "test_value"

    def test_substitute_variable_in_string(self):
        """Test variable substitution within a string."""
        with patch.dict(os.environ, {"SITE": "SAPA"}):
            result = substitute_environment_variables("Welcome to ${SITE}!")
            assert result == "Welcome to SAPA!"

    def test_substitute_variable_with_default(self):
        """Test variable substitution with default value."""
        with patch.dict(os.environ, {}, clear=True):
            assert substitute_environment_variables("${MISSING_VAR:fallback}") == "fallback"

        with patch.dict(os.environ, {"SET_VAR": "actual"}):
            assert substitute_environment_variables("${SET_VAR:fallback}") == "actual"

    def test_substitute_variable_with_bash_default(self):
        """Test variable substitution with bash-style default."""
        with patch.dict(os.environ, {}, clear=True):
            assert substitute_environment_variables("${MISSING_VAR:-fallback}") == "fallback"

    def test_missing_variable_left_unchanged(self):
        """Test that a missing required variable is kept for debugging."""
        with patch.dict(os.environ, {}, clear=True):
            assert substitute_environment_variables("${MISSING_VAR}") == "${MISSING_VAR}"

    def test_missing_variable_strict(self):
        """Test that strict mode rejects missing variables."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentSubstitutionError, match="MISSING_VAR"):
                substitute_environment_variables("${MISSING_VAR}", strict=True)

    def test_default_rejected_in_strict_mode(self):
        """Test that strict mode does not fall back to defaults."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentSubstitutionError, match="strict mode"):
                substitute_environment_variables("${MISSING_VAR:-x}", strict=True)

    def test_required_with_message(self):
        """Test the ${VAR:?message} form."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentSubstitutionError, match="site name needed"):
                substitute_environment_variables("${SITE_NAME:?site name needed}")

    def test_invalid_syntax(self):
        """Test an unsupported modifier."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentSubstitutionError, match="Invalid environment"):
                substitute_environment_variables("${VAR-x}")

    @pytest.mark.parametrize(
        "raw,expected",
        [("42", 42), ("3.5", 3.5), ("true", True), ("off", False), ("en", "en")],
    )
    def test_type_coercion(self, raw, expected):
        """Test coercion when a whole value is one variable."""
        with patch.dict(os.environ, {"VALUE": raw}):
            assert substitute_environment_variables("${VALUE}") == expected

    def test_no_coercion_inside_text(self):
        """Test that embedded variables stay strings."""
        with patch.dict(os.environ, {"SIZE": "64"}):
            assert substitute_environment_variables("size-${SIZE}") == "size-64"

    def test_nested_structures(self):
        """Test substitution through dicts and lists."""
        with patch.dict(os.environ, {"LANG_CODE": "en", "CACHE": "16"}):
            result = substitute_environment_variables(
                {"options": {"lang": "${LANG_CODE}"}, "sizes": ["${CACHE}", 1, None]}
            )
        assert result == {"options": {"lang": "en"}, "sizes": [16, 1, None]}

    def test_primitives_pass_through(self):
        """Test non-string values."""
        assert substitute_environment_variables(5) == 5
        assert substitute_environment_variables(None) is None
        assert substitute_environment_variables("plain") == "plain"
