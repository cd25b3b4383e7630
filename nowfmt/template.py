# nowfmt/template.py
"""Mustache-style template engine bound to the nowfmt helpers.

Supported syntax::

    {{field}}                      lookup, missing fields render nothing
    {{helper arg1 arg2}}           inline helper call
    {{#or arg1 arg2}}..{{/or}}     block helper call
    {{{field}}}                    same as {{field}}, nothing is escaped
    {{! comment }}  {{!-- comment --}}
    \\{{                            a literal "{{"

Arguments are double-quoted strings, numbers, ``true``, ``false``,
``null``, field names and array literals such as ``[1, null, "a"]``.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from .errors import NowfmtError, RenderError, TemplateError
from .helpers import BLOCK_HELPERS, HELPERS, Helper
from .value import Value, render_value, to_value

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<string>"(?:[^"\\]|\\.)*")
    | (?P<lbrack>\[)
    | (?P<rbrack>\])
    | (?P<comma>,)
    | (?P<word>[^\s{}\[\]()"'=,]+)
    """,
    re.VERBOSE,
)
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?")
_STRING_ESCAPE_RE = re.compile(r'\\(["\\])')

_KEYWORDS: Dict[str, Value] = {"true": True, "false": False, "null": None}


# Argument nodes

@dataclass(frozen=True)
class Literal:
    value: Value


@dataclass(frozen=True)
class Path:
    name: str


@dataclass(frozen=True)
class ArrayLiteral:
    items: Tuple["Param", ...]


Param = Union[Literal, Path, ArrayLiteral]


# Template nodes

@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Mustache:
    head: Param
    params: Tuple[Param, ...]
    line: int
    column: int


@dataclass(frozen=True)
class Block:
    name: str
    params: Tuple[Param, ...]
    body: Tuple["Node", ...]
    line: int
    column: int


Node = Union[Text, Mustache, Block]


@dataclass(frozen=True)
class CompiledTemplate:
    source: str
    nodes: Tuple[Node, ...]


class _Token(NamedTuple):
    kind: str
    text: str
    pos: int


def _position(source: str, pos: int) -> Tuple[int, int]:
    line = source.count("\n", 0, pos) + 1
    column = pos - source.rfind("\n", 0, pos)
    return line, column


class _Parser:
    def __init__(self, source: str, block_helpers: Iterable[str]):
        self.source = source
        self.block_helpers = frozenset(block_helpers)

    def error(self, reason: str, pos: int) -> TemplateError:
        line, column = _position(self.source, pos)
        return TemplateError(reason, line, column)

    def parse(self) -> Tuple[Node, ...]:
        source = self.source
        # Each frame: (name, params, open position, collected nodes)
        stack: List[Tuple[str, Tuple[Param, ...], int, List[Node]]] = []
        nodes: List[Node] = []
        pos = 0

        while pos < len(source):
            start = source.find("{{", pos)
            if start == -1:
                nodes.append(Text(source[pos:]))
                break

            if start > 0 and source[start - 1] == "\\":
                nodes.append(Text(source[pos:start - 1] + "{{"))
                pos = start + 2
                continue

            if start > pos:
                nodes.append(Text(source[pos:start]))

            if source.startswith("{{!--", start):
                end = source.find("--}}", start + 5)
                if end == -1:
                    raise self.error("Unclosed comment, expected '--}}'", start)
                pos = end + 4
                continue
            if source.startswith("{{!", start):
                end = source.find("}}", start + 3)
                if end == -1:
                    raise self.error("Unclosed comment, expected '}}'", start)
                pos = end + 2
                continue

            if source.startswith("{{{", start):
                tokens, pos = self._read_tag(start, start + 3, "}}}")
                nodes.append(self._mustache(tokens, start))
                continue

            tokens, pos = self._read_tag(start, start + 2, "}}")
            if not tokens:
                raise self.error("Empty expression", start)

            first = tokens[0]
            if first.kind == "word" and first.text.startswith("#"):
                name = first.text[1:]
                if not name:
                    raise self.error("Missing block helper name", first.pos)
                if name not in self.block_helpers:
                    raise self.error(f"'{name}' cannot be used as a block helper", first.pos)
                params = self._params(tokens[1:])
                stack.append((name, params, start, nodes))
                nodes = []
            elif first.kind == "word" and first.text.startswith("/"):
                name = first.text[1:]
                if len(tokens) > 1:
                    raise self.error("Closing tag takes no arguments", tokens[1].pos)
                if not stack:
                    raise self.error(f"Unexpected closing tag {{{{/{name}}}}}", start)
                open_name, params, open_pos, parent = stack.pop()
                if name != open_name:
                    raise self.error(
                        f"Mismatched closing tag: expected {{{{/{open_name}}}}}, found {{{{/{name}}}}}",
                        start,
                    )
                line, column = _position(source, open_pos)
                parent.append(Block(open_name, params, tuple(nodes), line, column))
                nodes = parent
            else:
                nodes.append(self._mustache(tokens, start))

        if stack:
            name, _, open_pos, _ = stack[-1]
            raise self.error(f"Unclosed block {{{{#{name}}}}}", open_pos)
        return tuple(nodes)

    def _read_tag(self, start: int, pos: int, close: str) -> Tuple[List[_Token], int]:
        source = self.source
        tokens: List[_Token] = []
        while True:
            if pos >= len(source):
                raise self.error(f"Unclosed expression, expected '{close}'", start)
            if source.startswith(close, pos):
                return tokens, pos + len(close)
            match = _TOKEN_RE.match(source, pos)
            if match is None:
                char = source[pos]
                if char == '"':
                    raise self.error("Unterminated string literal", pos)
                raise self.error(f"Unexpected character {char!r}", pos)
            if match.lastgroup != "ws":
                tokens.append(_Token(match.lastgroup, match.group(), pos))
            pos = match.end()

    def _mustache(self, tokens: List[_Token], start: int) -> Mustache:
        if not tokens:
            raise self.error("Empty expression", start)
        head, index = self._param(tokens, 0)
        params = self._params(tokens[index:])
        if params and not isinstance(head, Path):
            raise self.error("Expected a helper name", tokens[0].pos)
        line, column = _position(self.source, start)
        return Mustache(head, params, line, column)

    def _params(self, tokens: Sequence[_Token]) -> Tuple[Param, ...]:
        params = []
        index = 0
        while index < len(tokens):
            param, index = self._param(tokens, index)
            params.append(param)
        return tuple(params)

    def _param(self, tokens: Sequence[_Token], index: int) -> Tuple[Param, int]:
        token = tokens[index]
        if token.kind == "string":
            return Literal(_STRING_ESCAPE_RE.sub(r"\1", token.text[1:-1])), index + 1
        if token.kind == "word":
            return self._word(token), index + 1
        if token.kind == "lbrack":
            return self._array(tokens, index)
        raise self.error(f"Unexpected {token.text!r}", token.pos)

    def _array(self, tokens: Sequence[_Token], index: int) -> Tuple[ArrayLiteral, int]:
        opening = tokens[index]
        index += 1
        items = []
        while True:
            if index >= len(tokens):
                raise self.error("Unclosed array literal, expected ']'", opening.pos)
            token = tokens[index]
            if token.kind == "rbrack":
                return ArrayLiteral(tuple(items)), index + 1
            item, index = self._param(tokens, index)
            items.append(item)
            if index < len(tokens) and tokens[index].kind == "comma":
                index += 1
            elif index < len(tokens) and tokens[index].kind != "rbrack":
                raise self.error("Expected ',' or ']' in array literal", tokens[index].pos)

    def _word(self, token: _Token) -> Param:
        text = token.text
        if text in _KEYWORDS:
            return Literal(_KEYWORDS[text])
        if _NUMBER_RE.fullmatch(text):
            if any(c in text for c in ".eE"):
                return Literal(float(text))
            return Literal(int(text))
        if text[0] in "#/":
            raise self.error(f"Unexpected {text!r}", token.pos)
        return Path(text)


class Engine:
    """Helper registry and settings shared by compile and render.

    Lookup is never strict and output is never escaped.
    """

    def __init__(
        self,
        helpers: Optional[Mapping[str, Helper]] = None,
        block_helpers: Optional[Iterable[str]] = None,
    ):
        self.helpers: Dict[str, Helper] = dict(HELPERS if helpers is None else helpers)
        self.block_helpers = frozenset(BLOCK_HELPERS if block_helpers is None else block_helpers)

    def compile(self, source: str) -> CompiledTemplate:
        return CompiledTemplate(source, _Parser(source, self.block_helpers).parse())

    def render(self, template: CompiledTemplate, context: Mapping[str, Any]) -> str:
        return self._render_nodes(template.nodes, context)

    def render_template(self, source: str, context: Mapping[str, Any]) -> str:
        return self.render(self.compile(source), context)

    def _render_nodes(self, nodes: Sequence[Node], context: Mapping[str, Any]) -> str:
        out = []
        for node in nodes:
            if isinstance(node, Text):
                out.append(node.text)
            elif isinstance(node, Mustache):
                out.append(self._render_mustache(node, context))
            else:
                out.append(self._render_block(node, context))
        return "".join(out)

    def _render_mustache(self, node: Mustache, context: Mapping[str, Any]) -> str:
        head = node.head
        if isinstance(head, Path) and head.name in self.helpers:
            return self._call(head.name, node.params, None, context, node.line, node.column)
        if node.params:
            raise RenderError(f"Helper not defined: {head.name}", node.line, node.column)
        return render_value(_evaluate(head, context))

    def _render_block(self, node: Block, context: Mapping[str, Any]) -> str:
        if node.name not in self.helpers:
            raise RenderError(f"Helper not defined: {node.name}", node.line, node.column)

        def block() -> str:
            return self._render_nodes(node.body, context)

        return self._call(node.name, node.params, block, context, node.line, node.column)

    def _call(self, name, params, block, context, line, column) -> str:
        values = tuple(_evaluate(param, context) for param in params)
        try:
            return self.helpers[name](values, block)
        except NowfmtError:
            raise
        except Exception as exc:
            raise RenderError(f"Helper '{name}' failed: {exc}", line, column) from exc


def _evaluate(param: Param, context: Mapping[str, Any]) -> Value:
    if isinstance(param, Literal):
        return param.value
    if isinstance(param, Path):
        return to_value(context.get(param.name))
    return tuple(_evaluate(item, context) for item in param.items)
