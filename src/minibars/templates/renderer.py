"""Batch rendering of one template against many data contexts."""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .engine import TemplateEngine
from .engine import logger as engine_logger

PROGRESS_STEP = 10


@dataclass
class RenderResult:
    """Outputs and diagnostics of a batch render.

    ``errors`` holds ``(context index, message)`` pairs. A context with at
    least one message counts towards ``error_count``.
    """

    rendered: List[str]
    success_count: int
    error_count: int
    errors: List[Tuple[int, str]] = field(default_factory=list)
    render_time: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Percentage of contexts rendered without diagnostics."""
        total = self.success_count + self.error_count
        if not total:
            return 0.0
        return self.success_count / total * 100


class _DiagnosticCollector(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.messages: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())

    def drain(self) -> List[str]:
        messages, self.messages = self.messages, []
        return messages


@contextmanager
def _collect_diagnostics() -> Iterator[_DiagnosticCollector]:
    collector = _DiagnosticCollector()
    previous_level = engine_logger.level
    # Warnings must reach the collector even when the package logs at ERROR
    if engine_logger.getEffectiveLevel() > logging.WARNING:
        engine_logger.setLevel(logging.WARNING)
    engine_logger.addHandler(collector)
    try:
        yield collector
    finally:
        engine_logger.removeHandler(collector)
        engine_logger.setLevel(previous_level)


class BatchRenderer:
    """Render a template for a list of contexts and collect diagnostics.

    The engine never raises for unknown helpers or failing components, so
    a context counts as failed when its render logged a warning or an
    error. Its output is kept either way.
    """

    def __init__(self, engine: Optional[TemplateEngine] = None) -> None:
        self.engine = engine or TemplateEngine()

    def render(
        self,
        template: str,
        contexts: List[Dict[str, Any]],
        progress_callback: Optional[Callable[[int], None]] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> RenderResult:
        """Render a template with multiple contexts.

        Args:
            template: Template string or registered template name
            contexts: Data mappings, one render each
            progress_callback: Called with the number of contexts rendered
                since the previous call
            options: Render options passed to every render call

        Returns:
            RenderResult with the outputs in context order
        """
        started = time.perf_counter()

        syntax_errors = self.engine.validate_template(
            self.engine.get_template(template) or template
        )
        if syntax_errors:
            return RenderResult(
                rendered=[],
                success_count=0,
                error_count=len(syntax_errors),
                errors=[(0, message) for message in syntax_errors],
                render_time=time.perf_counter() - started,
                metadata={"validation_failed": True},
            )

        rendered: List[str] = []
        errors: List[Tuple[int, str]] = []
        pending = 0

        with _collect_diagnostics() as collector:
            for index, context in enumerate(contexts):
                rendered.append(self.engine.render(template, context, options))
                errors.extend((index, message) for message in collector.drain())

                pending += 1
                if progress_callback and pending == PROGRESS_STEP:
                    progress_callback(pending)
                    pending = 0

        if progress_callback and pending:
            progress_callback(pending)

        elapsed = time.perf_counter() - started
        failed = len({index for index, _message in errors})
        return RenderResult(
            rendered=rendered,
            success_count=len(contexts) - failed,
            error_count=failed,
            errors=errors,
            render_time=elapsed,
            metadata={
                "total_contexts": len(contexts),
                "avg_time_per_render": elapsed / len(contexts) if contexts else 0.0,
            },
        )
