"""Compiled, bindable search queries."""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from robot_core.errors import (
    MalformedQueryError,
    QueryBindingError,
    QueryEvaluationError,
    QueryParseError,
)

from .script import Compare, Field, Literal, Logical, Node, Not, Placeholder, parse

__all__ = [
    "Query",
    "compile_query",
    "compile_search",
    "query_from_dict",
]

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class Query:
    """An immutable predicate over the entities of a single search domain.

    ``parameters`` lists the placeholder names declared when the query was
    compiled. A query can only be executed once every placeholder has been
    replaced through :meth:`bind` (or by calling the query directly).
    """

    text: str
    expression: Node
    parameters: tuple[str, ...] = ()

    @property
    def is_bound(self) -> bool:
        return next(self.expression.placeholders(), None) is None

    def bind(self, *values: Any) -> "Query":
        """Return a copy with each declared parameter replaced by a value."""

        if len(values) != len(self.parameters):
            raise QueryBindingError(
                f"query {self.text!r} takes {len(self.parameters)} value(s), got {len(values)}"
            )
        bindings = dict(zip(self.parameters, values))
        return Query(text=self.text, expression=_substitute(self.expression, bindings))

    __call__ = bind

    def to_dict(self) -> dict[str, Any]:
        """Wire form sent to the build server."""

        if not self.is_bound:
            unbound = ", ".join(sorted(set(self.expression.placeholders())))
            raise QueryBindingError(f"query {self.text!r} has unbound placeholders: {unbound}")
        return _node_to_dict(self.expression)

    def matches(self, record: Mapping[str, Any]) -> bool:
        """Evaluate the query against a decoded entity record."""

        if not self.is_bound:
            raise QueryBindingError(f"query {self.text!r} has unbound placeholders")
        return bool(_evaluate(self.expression, record))


def compile_query(text: str, *parameters: str) -> Query:
    """Compile ``text`` declaring ``parameters`` as its placeholder names."""

    expression = parse(text)
    declared = set(parameters)
    for name in expression.placeholders():
        if name not in declared:
            raise QueryParseError(f"undeclared placeholder {name!r}", text=text, position=text.find(name))
    return Query(text=text, expression=expression, parameters=tuple(parameters))


def compile_search(text: str) -> Query:
    """Compile free text typed by a user, explaining any parse failure."""

    try:
        return compile_query(text)
    except QueryParseError as exc:
        raise MalformedQueryError(f"Malformed search query: {exc}") from exc


def query_from_dict(payload: Mapping[str, Any]) -> Query:
    """Rebuild a bound query from its wire form."""

    expression = _node_from_dict(payload)
    return Query(text="", expression=expression)


def _substitute(node: Node, bindings: Mapping[str, Any]) -> Node:
    if isinstance(node, Placeholder):
        return Literal(bindings[node.name]) if node.name in bindings else node
    if isinstance(node, Not):
        return Not(_substitute(node.operand, bindings))
    if isinstance(node, Compare):
        return Compare(node.op, _substitute(node.left, bindings), _substitute(node.right, bindings))
    if isinstance(node, Logical):
        return Logical(node.op, tuple(_substitute(item, bindings) for item in node.operands))
    return node


def _node_to_dict(node: Node) -> dict[str, Any]:
    if isinstance(node, Literal):
        return {"value": node.value}
    if isinstance(node, Field):
        return {"field": list(node.path)}
    if isinstance(node, Not):
        return {"not": _node_to_dict(node.operand)}
    if isinstance(node, Compare):
        return {"op": node.op, "left": _node_to_dict(node.left), "right": _node_to_dict(node.right)}
    if isinstance(node, Logical):
        return {node.op: [_node_to_dict(item) for item in node.operands]}
    raise QueryBindingError(f"cannot encode {type(node).__name__}")


def _node_from_dict(payload: Mapping[str, Any]) -> Node:
    if not isinstance(payload, Mapping):
        raise QueryEvaluationError(f"invalid query node {payload!r}")
    if "value" in payload:
        return Literal(payload["value"])
    if "field" in payload:
        return Field(tuple(str(part) for part in payload["field"]))
    if "not" in payload:
        return Not(_node_from_dict(payload["not"]))
    if "op" in payload:
        op = str(payload["op"])
        if op not in _COMPARATORS:
            raise QueryEvaluationError(f"unknown comparison {op!r}")
        return Compare(op, _node_from_dict(payload["left"]), _node_from_dict(payload["right"]))
    for op in ("and", "or"):
        if op in payload:
            return Logical(op, tuple(_node_from_dict(item) for item in payload[op]))
    raise QueryEvaluationError(f"invalid query node {dict(payload)!r}")


def _normalize(key: str) -> str:
    return key.replace("_", "").lower()


def _lookup(record: Mapping[str, Any], field: Field) -> Any:
    value: Any = record
    for part in field.path:
        if not isinstance(value, Mapping):
            raise QueryEvaluationError(f"field {field.name!r} does not exist")
        wanted = _normalize(part)
        for key, item in value.items():
            if _normalize(str(key)) == wanted:
                value = item
                break
        else:
            raise QueryEvaluationError(f"field {field.name!r} does not exist")
    return value


def _evaluate(node: Node, record: Mapping[str, Any]) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Field):
        return _lookup(record, node)
    if isinstance(node, Not):
        return not _evaluate(node.operand, record)
    if isinstance(node, Compare):
        left = _evaluate(node.left, record)
        right = _evaluate(node.right, record)
        try:
            return _COMPARATORS[node.op](left, right)
        except TypeError as exc:
            raise QueryEvaluationError(f"cannot compare {left!r} {node.op} {right!r}") from exc
    if isinstance(node, Logical):
        if node.op == "and":
            return all(_evaluate(item, record) for item in node.operands)
        return any(_evaluate(item, record) for item in node.operands)
    raise QueryBindingError(f"cannot evaluate {type(node).__name__}")
