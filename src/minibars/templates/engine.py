"""Mustache-like HTML template engine for minibars."""

import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from markupsafe import escape

from .context import (
    COMPONENTS_KEY,
    HELPERS_KEY,
    LOOP_BINDINGS,
    OPTIONS_KEY,
    RenderContext,
    is_path,
    is_truthy,
    loop_bindings,
    parse_keyword_arguments,
    parse_literal,
    resolve_path,
    split_arguments,
    split_keyword_arguments,
    to_display_string,
)
from .helpers import register_default_helpers
from .parser import (
    ComponentNode,
    EachNode,
    IfNode,
    Node,
    TemplateParseError,
    TextNode,
    VarNode,
    parse,
    walk,
)

logger = logging.getLogger(__name__)

Helper = Callable[..., Any]
Component = Callable[[Dict[str, Any], RenderContext], str]

_WHITESPACE_RE = re.compile(r"\s")


class TemplateEngine:
    """Template engine owning the template, helper and component registries.

    Rendering never raises for bad template syntax or failing helpers and
    components. Problems are logged and the offending tag renders as ''.
    """

    def __init__(
        self,
        cache_size: int = 128,
        default_helpers: bool = True,
        default_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize the template engine.

        Args:
            cache_size: Number of parsed templates kept in the cache
            default_helpers: Register the built-in helper set
            default_options: Render options merged under per-call options
        """
        self._templates: Dict[str, str] = {}
        self._helpers: Dict[str, Helper] = {}
        self._components: Dict[str, Component] = {}

        self.cache_size = cache_size
        self.default_options: Dict[str, Any] = dict(default_options or {})
        self._template_cache: Dict[str, List[Node]] = {}

        if default_helpers:
            register_default_helpers(self)

    # Registries

    def register_template(self, name: str, template: str) -> None:
        self._templates[name] = template

    def register_helper(self, name: str, fn: Helper) -> None:
        self._helpers[name] = fn

    def register_component(self, name: str, fn: Component) -> None:
        self._components[name] = fn

    def get_template(self, name: str) -> Optional[str]:
        return self._templates.get(name)

    def get_helper(self, name: str) -> Optional[Helper]:
        return self._helpers.get(name)

    def get_component(self, name: str) -> Optional[Component]:
        return self._components.get(name)

    @property
    def templates(self) -> Tuple[str, ...]:
        return tuple(self._templates)

    @property
    def helpers(self) -> Tuple[str, ...]:
        return tuple(self._helpers)

    @property
    def components(self) -> Tuple[str, ...]:
        return tuple(self._components)

    # Rendering

    def compile_template(self, template_string: str) -> List[Node]:
        """Parse a template string with caching.

        Args:
            template_string: The template string to parse

        Returns:
            Top-level nodes of the parsed template
        """
        if template_string in self._template_cache:
            return self._template_cache[template_string]

        nodes = parse(template_string)

        if self.cache_size > 0:
            if len(self._template_cache) >= self.cache_size:
                # Remove oldest entry (simple FIFO)
                oldest_key = next(iter(self._template_cache))
                del self._template_cache[oldest_key]
            self._template_cache[template_string] = nodes

        return nodes

    def build_context(
        self, data: Any = None, options: Optional[Dict[str, Any]] = None
    ) -> RenderContext:
        """Build the root context for a render call."""
        context = RenderContext(self._as_mapping(data))
        context[HELPERS_KEY] = self._helpers
        context[COMPONENTS_KEY] = self._components
        context[OPTIONS_KEY] = {**self.default_options, **(options or {})}
        return context

    def render(
        self,
        template: str,
        data: Any = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Render a template or registered template name with data.

        Args:
            template: Registered template name or literal template string
            data: Mapping of template variables
            options: Render options exposed to helpers and components as
                ``$options``

        Returns:
            Rendered HTML

        Raises:
            TypeError: If template is not a string
        """
        if not isinstance(template, str):
            raise TypeError(
                "template must be a template string or registered template name, "
                f"got {type(template).__name__}"
            )

        template_string = self._templates.get(template, template)
        context = self.build_context(data, options)
        return self.process_template(template_string, context)

    def process_template(self, template_string: str, context: RenderContext) -> str:
        """Run the render pipeline over a template string."""
        return self._render_nodes(self.compile_template(template_string), context)

    def _render_nodes(self, nodes: List[Node], context: RenderContext) -> str:
        # Conditionals, then loops, then variables, then components.
        passes = (
            (IfNode, self._resolve_conditional),
            (EachNode, self._resolve_loop),
            (VarNode, self._interpolate),
            (ComponentNode, self._expand_component),
        )
        parts: List[Union[Node, str]] = list(nodes)
        for node_type, resolve in passes:
            parts = [
                resolve(part, context) if isinstance(part, node_type) else part
                for part in parts
            ]
        return "".join(
            part.text if isinstance(part, TextNode) else part for part in parts
        )

    def _resolve_conditional(self, node: IfNode, context: RenderContext) -> str:
        if not is_truthy(self.evaluate(node.expression, context)):
            return ""
        return self._render_nodes(node.children, context)

    def _resolve_loop(self, node: EachNode, context: RenderContext) -> str:
        items = resolve_path(node.path, context)
        if not isinstance(items, (list, tuple)):
            return ""

        length = len(items)
        return "".join(
            self._render_nodes(
                node.children, context.child(loop_bindings(item, index, length))
            )
            for index, item in enumerate(items)
        )

    def _interpolate(self, node: VarNode, context: RenderContext) -> str:
        value = self.evaluate(node.expression, context)
        return str(escape(to_display_string(value)))

    def _expand_component(self, node: ComponentNode, context: RenderContext) -> str:
        component = self._components.get(node.name)
        if component is None:
            logger.warning(f"Component not found: {node.name}")
            return ""

        args = parse_keyword_arguments(node.arguments, context)
        try:
            result = component(args, context)
        except Exception as e:
            logger.error(f"Error rendering component {node.name}: {e}")
            return ""
        return to_display_string(result)

    def evaluate(self, expression: str, context: RenderContext) -> Any:
        """Evaluate a tag expression to its raw value.

        Expressions containing whitespace are helper calls, anything else is
        a dotted path. Unknown or failing helpers evaluate to None.
        """
        if not _WHITESPACE_RE.search(expression):
            return resolve_path(expression, context)

        name, *raw_args = split_arguments(expression)
        helper = self._helpers.get(name)
        if helper is None:
            logger.warning(f"Helper not found: {name}")
            return None

        args = [parse_literal(arg, context) for arg in raw_args]
        try:
            return helper(*args, context)
        except Exception as e:
            logger.error(f"Error executing helper {name}: {e}")
            return None

    # Introspection

    def extract_variables(self, template_string: str) -> Set[str]:
        """Extract the root names of all data paths a template reads.

        Args:
            template_string: The template string to analyze

        Returns:
            Set of variable names, excluding loop bindings
        """
        paths: List[str] = []
        for node in walk(parse(template_string)):
            if isinstance(node, EachNode):
                paths.append(node.path)
            elif isinstance(node, (IfNode, VarNode)):
                paths.extend(self._expression_paths(node.expression))
            elif isinstance(node, ComponentNode):
                paths.extend(
                    value
                    for _key, value in split_keyword_arguments(node.arguments)
                    if is_path(value)
                )

        variables = set()
        for path in paths:
            root = path.split(".")[0]
            if root and root not in LOOP_BINDINGS and not root.startswith("$"):
                variables.add(root)
        return variables

    @staticmethod
    def _expression_paths(expression: str) -> List[str]:
        if not _WHITESPACE_RE.search(expression):
            return [expression]
        _name, *raw_args = split_arguments(expression)
        return [arg for arg in raw_args if is_path(arg)]

    def validate_template(self, template_string: str) -> List[str]:
        """Validate template syntax and return any errors.

        Args:
            template_string: The template to validate

        Returns:
            List of error messages (empty if valid)
        """
        if not template_string or not template_string.strip():
            return ["Template cannot be empty"]

        try:
            parse(template_string, strict=True)
        except TemplateParseError as e:
            return [f"Syntax error at line {e.lineno}: {e.message}"]
        return []

    @staticmethod
    def _as_mapping(data: Any) -> Mapping:
        if data is None:
            return {}
        if isinstance(data, Mapping):
            return data
        if hasattr(data, "model_dump"):
            return data.model_dump()
        logger.warning(
            f"Ignoring render data of type {type(data).__name__}; expected a mapping"
        )
        return {}
