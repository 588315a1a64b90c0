"""Tokenizer and block parser for minibars templates.

Templates are split on ``{{ ... }}`` tags and assembled into a small node
tree so that nested blocks close against their own opening tag:

- ``TextNode``: literal text
- ``IfNode``: ``{{#if expr}} ... {{/if}}``
- ``EachNode``: ``{{#each path}} ... {{/each}}``
- ``VarNode``: ``{{path}}`` or ``{{helper arg ...}}``
- ``ComponentNode``: ``{{component:Name key=value ...}}``
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

TAG_RE = re.compile(r"\{\{([^}]+)\}\}")
_OPEN_RE = re.compile(r"^#(if|each)\s+(.+)$", re.DOTALL)
_CLOSE_RE = re.compile(r"^/(if|each)$")
_COMPONENT_RE = re.compile(r"^component:(\w+)(.*)$", re.DOTALL)


class TemplateParseError(ValueError):
    """Raised by strict parsing when block tags do not balance."""

    def __init__(self, message: str, lineno: int) -> None:
        super().__init__(f"line {lineno}: {message}")
        self.message = message
        self.lineno = lineno


@dataclass
class TextNode:
    text: str


@dataclass
class VarNode:
    expression: str
    lineno: int = 1


@dataclass
class ComponentNode:
    name: str
    arguments: str
    lineno: int = 1


@dataclass
class IfNode:
    expression: str
    children: List["Node"] = field(default_factory=list)
    lineno: int = 1


@dataclass
class EachNode:
    path: str
    children: List["Node"] = field(default_factory=list)
    lineno: int = 1


Node = Union[TextNode, VarNode, ComponentNode, IfNode, EachNode]
BlockNode = Union[IfNode, EachNode]

_BLOCK_TYPES = {"if": IfNode, "each": EachNode}


def _block_kind(node: BlockNode) -> str:
    return "if" if isinstance(node, IfNode) else "each"


class _Builder:
    """Stack-based tree builder shared by lenient and strict parsing."""

    def __init__(self, strict: bool) -> None:
        self.strict = strict
        self.root: List[Node] = []
        self.stack: List[BlockNode] = []

    @property
    def current(self) -> List[Node]:
        return self.stack[-1].children if self.stack else self.root

    def add(self, node: Node) -> None:
        if isinstance(node, TextNode) and self.current:
            last = self.current[-1]
            if isinstance(last, TextNode):
                last.text += node.text
                return
        self.current.append(node)

    def open(self, node: BlockNode) -> None:
        self.current.append(node)
        self.stack.append(node)

    def close(self, kind: str, lineno: int) -> None:
        depth = self._find_open(kind)
        if depth is None:
            if self.strict:
                raise TemplateParseError(f"unexpected '{{{{/{kind}}}}}'", lineno)
            return

        while len(self.stack) > depth + 1:
            unclosed = self.stack[-1]
            if self.strict:
                raise TemplateParseError(
                    f"'{{{{/{kind}}}}}' closes '{{{{#{_block_kind(unclosed)}}}}}' "
                    f"opened on line {unclosed.lineno}",
                    lineno,
                )
            self._dissolve_top()
        self.stack.pop()

    def finish(self) -> List[Node]:
        while self.stack:
            unclosed = self.stack[-1]
            if self.strict:
                raise TemplateParseError(
                    f"'{{{{#{_block_kind(unclosed)}}}}}' is never closed",
                    unclosed.lineno,
                )
            self._dissolve_top()
        return self.root

    def _find_open(self, kind: str) -> Optional[int]:
        for depth in range(len(self.stack) - 1, -1, -1):
            if _block_kind(self.stack[depth]) == kind:
                return depth
        return None

    def _dissolve_top(self) -> None:
        # An unclosed block loses its tag and keeps its body inline.
        node = self.stack.pop()
        self.current.pop()
        for child in node.children:
            self.add(child)


def parse(template: str, strict: bool = False) -> List[Node]:
    """Parse a template string into a list of nodes.

    Args:
        template: Raw template text
        strict: Raise TemplateParseError on unbalanced block tags instead of
            degrading them

    Returns:
        Top-level nodes of the template
    """
    builder = _Builder(strict)
    pos = 0
    lineno = 1

    for match in TAG_RE.finditer(template):
        start, end = match.span()
        if start > pos:
            builder.add(TextNode(template[pos:start]))
        lineno += template.count("\n", pos, start)

        tag = match.group(1).strip()
        opening = _OPEN_RE.match(tag)
        closing = _CLOSE_RE.match(tag)
        component = _COMPONENT_RE.match(tag)

        if opening:
            kind, expression = opening.group(1), opening.group(2).strip()
            builder.open(_BLOCK_TYPES[kind](expression, lineno=lineno))
        elif closing:
            builder.close(closing.group(1), lineno)
        elif component:
            builder.add(
                ComponentNode(
                    component.group(1), component.group(2).strip(), lineno=lineno
                )
            )
        else:
            builder.add(VarNode(tag, lineno=lineno))

        lineno += template.count("\n", start, end)
        pos = end

    if pos < len(template):
        builder.add(TextNode(template[pos:]))

    return builder.finish()


def walk(nodes: List[Node]):
    """Yield every node of a tree depth first."""
    for node in nodes:
        yield node
        if isinstance(node, (IfNode, EachNode)):
            yield from walk(node.children)
