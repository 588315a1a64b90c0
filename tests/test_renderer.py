"""Tests for batch rendering."""

import logging

import pytest

from minibars.templates import BatchRenderer, RenderResult, TemplateEngine


class TestBatchRenderer:
    """Test rendering one template for many contexts."""

    @pytest.fixture
    def renderer(self, engine):
        """Create a batch renderer."""
        return BatchRenderer(engine)

    def test_render_all_contexts(self, renderer):
        """Test a batch with no problems."""
        result = renderer.render("Hi {{name}}", [{"name": "a"}, {"name": "b"}, {"name": "c"}])

        assert result.rendered == ["Hi a", "Hi b", "Hi c"]
        assert result.success_count == 3
        assert result.error_count == 0
        assert result.errors == []
        assert result.success_rate == 100.0
        assert result.metadata["total_contexts"] == 3

    def test_diagnostics_mark_context_failed(self, renderer):
        """Test that warnings during one render fail only that context."""
        template = "{{#if broken}}{{nope x}}{{/if}}{{name}}"
        result = renderer.render(template, [{"name": "a"}, {"name": "b", "broken": True}])

        assert result.rendered == ["a", "b"]
        assert result.success_count == 1
        assert result.error_count == 1
        assert result.errors == [(1, "Helper not found: nope")]
        assert result.success_rate == 50.0

    def test_diagnostics_collected_when_package_logs_errors_only(self, renderer):
        """Test that warnings count as failures even with the logger at ERROR."""
        package_logger = logging.getLogger("minibars")
        engine_logger = logging.getLogger("minibars.templates.engine")
        previous = package_logger.level
        package_logger.setLevel(logging.ERROR)
        try:
            result = renderer.render("{{nope x}}", [{}])

            assert result.success_count == 0
            assert result.error_count == 1
            assert result.errors == [(0, "Helper not found: nope")]
            assert engine_logger.level == logging.NOTSET
            assert engine_logger.getEffectiveLevel() == logging.ERROR
        finally:
            package_logger.setLevel(previous)

    def test_component_errors_collected(self, engine):
        """Test that component failures are collected."""

        def broken(args, context):
            raise ValueError("no title")

        engine.register_component("card", broken)
        result = BatchRenderer(engine).render("{{component:card}}", [{}])

        assert result.error_count == 1
        assert result.errors == [(0, "Error rendering component card: no title")]

    def test_invalid_template(self, renderer):
        """Test that a syntax error stops the batch before rendering."""
        result = renderer.render("{{#if a}}", [{"a": True}])

        assert result.rendered == []
        assert result.metadata["validation_failed"] is True
        assert result.errors == [(0, "Syntax error at line 1: '{{#if}}' is never closed")]

    def test_registered_template(self, engine):
        """Test rendering a registered template by name."""
        engine.register_template("row", "<tr><td>{{name}}</td></tr>")
        result = BatchRenderer(engine).render("row", [{"name": "x"}])
        assert result.rendered == ["<tr><td>x</td></tr>"]

    def test_options(self, renderer):
        """Test options passed to every render."""
        result = renderer.render("{{$options.lang}}", [{}, {}], options={"lang": "en"})
        assert result.rendered == ["en", "en"]

    def test_progress_callback(self, renderer):
        """Test progress reporting in batches of ten."""
        calls = []
        renderer.render("{{n}}", [{"n": i} for i in range(25)], progress_callback=calls.append)
        assert calls == [10, 10, 5]

    def test_default_engine(self):
        """Test that a renderer creates its own engine."""
        renderer = BatchRenderer()
        assert isinstance(renderer.engine, TemplateEngine)
        assert renderer.render("{{upper x}}", [{"x": "a"}]).rendered == ["A"]


class TestRenderResult:
    """Test RenderResult."""

    def test_empty_success_rate(self):
        """Test the success rate of an empty batch."""
        assert RenderResult(rendered=[], success_count=0, error_count=0).success_rate == 0.0
