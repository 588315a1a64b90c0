"""Template validation and HTML safety checking for minibars."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from .context import split_arguments
from .engine import TemplateEngine
from .parser import (
    TAG_RE,
    ComponentNode,
    EachNode,
    IfNode,
    Node,
    VarNode,
    parse,
    walk,
)

MAX_LINE_LENGTH = 200
MAX_NESTING = 3

# Places where HTML escaping alone does not make interpolation safe
UNSAFE_INTERPOLATION = [
    (
        re.compile(r"<script[^>]*>[^<]*\{\{", re.IGNORECASE),
        "Interpolation inside <script> is HTML-escaped, not JavaScript-escaped",
    ),
    (
        re.compile(r"\son\w+\s*=\s*[\"']?[^\"'>]*\{\{", re.IGNORECASE),
        "Interpolation inside an event handler attribute",
    ),
    (
        re.compile(r"\b(?:href|src)\s*=\s*[\"']?\{\{", re.IGNORECASE),
        "URL attribute starts with a variable; javascript: URLs are not filtered",
    ),
    (
        re.compile(r"\bstyle\s*=\s*[\"'][^\"']*\{\{", re.IGNORECASE),
        "Interpolation inside a style attribute",
    ),
]

_OPEN_DELIMITER_RE = re.compile(r"\{\{")
_WHITESPACE_RE = re.compile(r"\s")


class ValidationLevel(Enum):
    PERMISSIVE = "permissive"  # block structure only
    STANDARD = "standard"  # plus references and HTML contexts
    STRICT = "strict"  # plus line length, nesting and unused variables


@dataclass
class ValidationResult:
    """Outcome of validating a template or its rendered output."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    variables: Set[str] = field(default_factory=set)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


class TemplateValidator:
    """Check templates against the registries of a TemplateEngine.

    Broken block structure is an error, since the engine would quietly
    render something other than what the author wrote. Unknown helpers and
    components, risky HTML contexts and style problems are warnings.
    """

    def __init__(
        self,
        engine: Optional[TemplateEngine] = None,
        level: ValidationLevel = ValidationLevel.STANDARD,
    ) -> None:
        self.engine = engine or TemplateEngine()
        self.level = level

    def validate(
        self,
        template_string: str,
        expected_variables: Optional[Set[str]] = None,
        max_length: Optional[int] = None,
    ) -> ValidationResult:
        """Validate a template string.

        Args:
            template_string: Template to validate
            expected_variables: Names the caller will provide; any other
                variable the template reads is an error
            max_length: Maximum allowed template length

        Returns:
            ValidationResult with errors, warnings, variables and metadata
        """
        result = ValidationResult()
        if not template_string:
            result.errors.append("Template cannot be empty")
            result.metadata["empty"] = True
            return result

        size = len(template_string)
        result.metadata["length"] = size
        result.metadata["lines"] = template_string.count("\n") + 1
        if max_length and size > max_length:
            result.errors.append(
                f"Template is {size} characters, more than the limit of {max_length}"
            )

        syntax_errors = self.engine.validate_template(template_string)
        syntax_errors.extend(self._delimiter_errors(template_string))
        result.errors.extend(syntax_errors)

        if not syntax_errors:
            self._check_structure(template_string, expected_variables, result)

        if self.level is not ValidationLevel.PERMISSIVE:
            result.warnings.extend(
                f"Potential issue: {message}"
                for pattern, message in UNSAFE_INTERPOLATION
                if pattern.search(template_string)
            )

        if self.level is ValidationLevel.STRICT:
            result.warnings.extend(
                f"Line {lineno} is very long ({len(line)} chars)"
                for lineno, line in enumerate(template_string.split("\n"), 1)
                if len(line) > MAX_LINE_LENGTH
            )

        result.warnings.extend(self._control_characters(template_string))
        return result

    def _check_structure(
        self,
        template_string: str,
        expected_variables: Optional[Set[str]],
        result: ValidationResult,
    ) -> None:
        nodes = parse(template_string)
        variables = self.engine.extract_variables(template_string)
        nesting = nesting_depth(nodes)

        result.variables = variables
        result.metadata["variable_count"] = len(variables)
        result.metadata["max_nesting"] = nesting

        if expected_variables:
            undefined = sorted(variables - expected_variables)
            if undefined:
                result.errors.append(
                    f"Template uses undefined variables: {', '.join(undefined)}"
                )
            unused = sorted(expected_variables - variables)
            if unused and self.level is ValidationLevel.STRICT:
                result.warnings.append(
                    f"Expected variables not used by the template: {', '.join(unused)}"
                )

        if self.level is not ValidationLevel.PERMISSIVE:
            result.warnings.extend(self._unknown_references(nodes))

        if self.level is ValidationLevel.STRICT and nesting > MAX_NESTING:
            result.warnings.append(f"Deep nesting detected (level {nesting})")

    @staticmethod
    def _delimiter_errors(template_string: str) -> List[str]:
        # A '{{' outside every complete tag renders as literal text; a lone
        # '}}' is ordinary text such as CSS or JS.
        tag_spans = [match.span() for match in TAG_RE.finditer(template_string)]
        errors = []
        for match in _OPEN_DELIMITER_RE.finditer(template_string):
            position = match.start()
            if any(start <= position < end for start, end in tag_spans):
                continue
            lineno = template_string.count("\n", 0, position) + 1
            errors.append(f"Line {lineno}: '{{{{' is never closed by '}}}}'")
        return errors

    def _unknown_references(self, nodes: List[Node]) -> List[str]:
        helpers = set(self.engine.helpers)
        components = set(self.engine.components)

        found = []
        for node in walk(nodes):
            if isinstance(node, ComponentNode):
                if node.name not in components:
                    found.append(f"Line {node.lineno}: unknown component '{node.name}'")
            elif isinstance(node, (VarNode, IfNode)) and _WHITESPACE_RE.search(
                node.expression
            ):
                name = split_arguments(node.expression)[0]
                if name not in helpers:
                    found.append(f"Line {node.lineno}: unknown helper '{name}'")
        return found

    @staticmethod
    def _control_characters(template_string: str) -> List[str]:
        found = sorted(
            {
                repr(char)
                for char in template_string
                if (ord(char) < 32 and char not in "\t\n\r") or 127 <= ord(char) < 160
            }
        )
        if not found:
            return []
        return [f"Template contains control characters: {', '.join(found)}"]

    def validate_output(
        self,
        rendered_output: str,
        max_length: Optional[int] = None,
        required_patterns: Iterable[str] = (),
        forbidden_patterns: Iterable[str] = (),
    ) -> ValidationResult:
        """Validate rendered HTML.

        Args:
            rendered_output: The rendered HTML
            max_length: Maximum allowed output length
            required_patterns: Regular expressions that must match
            forbidden_patterns: Regular expressions that must not match

        Returns:
            ValidationResult for the output
        """
        size = len(rendered_output)
        result = ValidationResult(metadata={"output_length": size})

        if max_length and size > max_length:
            result.errors.append(
                f"Output is {size} characters, more than the limit of {max_length}"
            )
        result.errors.extend(
            f"Required pattern not found: {pattern}"
            for pattern in required_patterns
            if not re.search(pattern, rendered_output)
        )
        result.errors.extend(
            f"Forbidden pattern found: {pattern}"
            for pattern in forbidden_patterns
            if re.search(pattern, rendered_output)
        )

        # Left behind by a '{{' without '}}' or a tag in a component's output
        if _OPEN_DELIMITER_RE.search(rendered_output):
            result.warnings.append("Output contains unrendered template syntax")

        return result


def nesting_depth(nodes: List[Node]) -> int:
    """Depth of the deepest {{#if}} / {{#each}} block in a node tree."""
    return max(
        (
            1 + nesting_depth(node.children)
            for node in nodes
            if isinstance(node, (IfNode, EachNode))
        ),
        default=0,
    )
