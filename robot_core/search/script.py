"""Tokenizer and parser for the search expression language.

The grammar, loosest binding first::

    expression := or_expr
    or_expr    := and_expr (("or" | "||") and_expr)*
    and_expr   := not_expr (("and" | "&&") not_expr)*
    not_expr   := ("not" | "!") not_expr | comparison
    comparison := operand (("==" | "!=" | "<" | "<=" | ">" | ">=") operand)?
    operand    := "(" expression ")" | literal | field | placeholder
    field      := name ("." name)*
    literal    := string | number | "true" | "false"
    placeholder:= "$" name?

Parsing produces an immutable tree of :class:`Node` values. The tree knows
nothing about the domain it will be evaluated against.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator

from robot_core.errors import QueryParseError

__all__ = [
    "Node",
    "Literal",
    "Field",
    "Placeholder",
    "Not",
    "Compare",
    "Logical",
    "MATCH_ALL",
    "parse",
    "COMPARISON_OPERATORS",
]

COMPARISON_OPERATORS = ("==", "!=", "<=", ">=", "<", ">")
_KEYWORDS = {"and": "&&", "or": "||", "not": "!"}

_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
  | (?P<number>-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)
  | (?P<placeholder>\$[A-Za-z_][A-Za-z0-9_]*|\$)
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<operator>==|!=|<=|>=|&&|\|\||<|>|!|\(|\)|\.)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    position: int


class Node:
    """Base class for expression tree nodes."""

    def placeholders(self) -> Iterator[str]:
        return iter(())


@dataclass(frozen=True)
class Literal(Node):
    value: Any


@dataclass(frozen=True)
class Field(Node):
    path: tuple[str, ...]

    @property
    def name(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class Placeholder(Node):
    name: str

    def placeholders(self) -> Iterator[str]:
        yield self.name


@dataclass(frozen=True)
class Not(Node):
    operand: Node

    def placeholders(self) -> Iterator[str]:
        yield from self.operand.placeholders()


@dataclass(frozen=True)
class Compare(Node):
    op: str
    left: Node
    right: Node

    def placeholders(self) -> Iterator[str]:
        yield from self.left.placeholders()
        yield from self.right.placeholders()


@dataclass(frozen=True)
class Logical(Node):
    op: str
    operands: tuple[Node, ...]

    def placeholders(self) -> Iterator[str]:
        for operand in self.operands:
            yield from operand.placeholders()


MATCH_ALL = Literal(True)

_ESCAPES = {'"': '"', "'": "'", "\\": "\\", "/": "/", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_RE = re.compile(r"\\(u[dD][89abAB][0-9a-fA-F]{2}\\u[dD][c-fC-F][0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|.)", re.DOTALL)


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    position = 0
    while position < len(text):
        match = _TOKEN_RE.match(text, position)
        if match is None:
            raise QueryParseError(
                f"unexpected character {text[position]!r}", text=text, position=position
            )
        kind = match.lastgroup or ""
        value = match.group(0)
        if kind == "name" and value.lower() in _KEYWORDS:
            kind, value = "operator", _KEYWORDS[value.lower()]
        if kind != "space":
            tokens.append(_Token(kind, value, position))
        position = match.end()
    return tokens


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.index = 0

    def _peek(self) -> _Token | None:
        if self.index < len(self.tokens):
            return self.tokens[self.index]
        return None

    def _accept(self, *values: str) -> _Token | None:
        token = self._peek()
        if token is not None and token.kind == "operator" and token.value in values:
            self.index += 1
            return token
        return None

    def _error(self, message: str, token: _Token | None) -> QueryParseError:
        position = token.position if token is not None else len(self.text)
        return QueryParseError(message, text=self.text, position=position)

    def parse(self) -> Node:
        if not self.tokens:
            return MATCH_ALL
        node = self._or()
        token = self._peek()
        if token is not None:
            raise self._error(f"unexpected {token.value!r}", token)
        return node

    def _or(self) -> Node:
        operands = [self._and()]
        while self._accept("||"):
            operands.append(self._and())
        return operands[0] if len(operands) == 1 else Logical("or", tuple(operands))

    def _and(self) -> Node:
        operands = [self._not()]
        while self._accept("&&"):
            operands.append(self._not())
        return operands[0] if len(operands) == 1 else Logical("and", tuple(operands))

    def _not(self) -> Node:
        if self._accept("!"):
            return Not(self._not())
        return self._comparison()

    def _comparison(self) -> Node:
        left = self._operand()
        token = self._accept(*COMPARISON_OPERATORS)
        if token is None:
            return left
        return Compare(token.value, left, self._operand())

    def _operand(self) -> Node:
        token = self._peek()
        if token is None:
            raise self._error("unexpected end of query", None)
        if self._accept("("):
            node = self._or()
            if not self._accept(")"):
                raise self._error("expected ')'", self._peek())
            return node
        self.index += 1
        if token.kind == "string":
            return Literal(_unquote(token, self.text))
        if token.kind == "number":
            return Literal(float(token.value) if any(c in token.value for c in ".eE") else int(token.value))
        if token.kind == "placeholder":
            return Placeholder(token.value)
        if token.kind == "name":
            lowered = token.value.lower()
            if lowered in ("true", "false"):
                return Literal(lowered == "true")
            path = [token.value]
            while self._accept("."):
                part = self._peek()
                if part is None or part.kind != "name":
                    raise self._error("expected field name after '.'", part)
                self.index += 1
                path.append(part.value)
            return Field(tuple(path))
        raise self._error(f"unexpected {token.value!r}", token)


def _unquote(token: _Token, text: str) -> str:
    """Decode a quoted literal; both quote styles share the JSON escape set plus \\'."""

    def replace(match: re.Match[str]) -> str:
        escape = match.group(1)
        if len(escape) >= 5:
            code = int(escape[1:5], 16)
            if len(escape) > 5:
                low = int(escape[7:], 16)
                return chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00))
            return chr(code)
        try:
            return _ESCAPES[escape]
        except KeyError:
            raise QueryParseError(
                "invalid string escape", text=text, position=token.position + 1 + match.start()
            ) from None

    return _ESCAPE_RE.sub(replace, token.value[1:-1])


def parse(text: str) -> Node:
    """Parse ``text`` into an expression tree, raising :class:`QueryParseError`."""

    return _Parser(text).parse()
