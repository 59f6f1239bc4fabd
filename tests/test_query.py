"""Tests for the search expression parser and compiled queries."""

from __future__ import annotations

import pytest

from robot_core.errors import (
    MalformedQueryError,
    QueryBindingError,
    QueryEvaluationError,
    QueryParseError,
)
from robot_core.search import compile_query, compile_search, query_from_dict
from robot_core.search.script import MATCH_ALL, Compare, Field, Literal, Logical, Not, Placeholder, parse


def test_parse_comparison_and_precedence() -> None:
    node = parse('Name == "alpha" or Head != "" and not Executable')
    assert node == Logical(
        "or",
        (
            Compare("==", Field(("Name",)), Literal("alpha")),
            Logical(
                "and",
                (
                    Compare("!=", Field(("Head",)), Literal("")),
                    Not(Field(("Executable",))),
                ),
            ),
        ),
    )


def test_parse_symbolic_operators_match_keywords() -> None:
    assert parse("a == 1 && (b || !c)") == parse("a == 1 and (b or not c)")


def test_parse_literals_and_dotted_fields() -> None:
    assert parse("Information.Branch == 'main'") == Compare(
        "==", Field(("Information", "Branch")), Literal("main")
    )
    assert parse("Length >= 10") == Compare(">=", Field(("Length",)), Literal(10))
    assert parse("Score < -2.5") == Compare("<", Field(("Score",)), Literal(-2.5))
    assert parse("Executable == TRUE") == Compare("==", Field(("Executable",)), Literal(True))
    assert parse(r'Name == "say \"hi\""') == Compare("==", Field(("Name",)), Literal('say "hi"'))
    assert parse(r"Name == 'it\'s'") == Compare("==", Field(("Name",)), Literal("it's"))


def test_parse_string_escapes() -> None:
    assert parse(r"""Name == 'a\\"b'""").right == Literal('a\\"b')
    assert parse(r"""Name == 'say "hi"'""").right == Literal('say "hi"')
    assert parse(r'Name == "tab\there\\"').right == Literal("tab\there\\")
    assert parse(r'Name == "\u00e9\ud83d\ude00"').right == Literal("\u00e9\U0001F600")
    assert compile_search(r"""Name == 'a\\"b'""").matches({"name": 'a\\"b'})


def test_invalid_string_escape() -> None:
    with pytest.raises(QueryParseError, match="invalid string escape") as excinfo:
        parse(r'Name == "a\qb"')
    assert excinfo.value.position == 10
    with pytest.raises(QueryParseError, match="invalid string escape"):
        parse(r'Name == "\u12"')


def test_parse_placeholders() -> None:
    assert parse("Id == $ or Name == $name") == Logical(
        "or",
        (
            Compare("==", Field(("Id",)), Placeholder("$")),
            Compare("==", Field(("Name",)), Placeholder("$name")),
        ),
    )


def test_empty_text_matches_everything() -> None:
    assert parse("") is MATCH_ALL
    assert parse("   ") is MATCH_ALL
    assert compile_query("").matches({"id": "x"})


@pytest.mark.parametrize(
    ("text", "position"),
    [
        ("Name ==", 7),
        ("(Name == 1", 10),
        ("Name == 1)", 9),
        ("Name # 1", 5),
        ("Information. == 1", 13),
    ],
)
def test_parse_errors_report_position(text: str, position: int) -> None:
    with pytest.raises(QueryParseError) as excinfo:
        parse(text)
    assert excinfo.value.position == position
    assert excinfo.value.text == text
    assert f"offset {position}" in str(excinfo.value)


def test_compile_is_deterministic() -> None:
    assert compile_query('Name == "a" or Id == "b"') == compile_query('Name == "a" or Id == "b"')


def test_compile_rejects_undeclared_placeholders() -> None:
    with pytest.raises(QueryParseError, match="undeclared placeholder"):
        compile_query("Id == $")


def test_bind_replaces_every_occurrence() -> None:
    template = compile_query("Id == $ or Name == $", "$")
    assert not template.is_bound
    bound = template("alpha")
    assert bound.is_bound
    assert bound.to_dict() == {
        "or": [
            {"op": "==", "left": {"field": ["Id"]}, "right": {"value": "alpha"}},
            {"op": "==", "left": {"field": ["Name"]}, "right": {"value": "alpha"}},
        ]
    }
    assert template.bind("alpha") == bound


def test_bind_checks_value_count() -> None:
    template = compile_query("Id == $", "$")
    with pytest.raises(QueryBindingError):
        template.bind()
    with pytest.raises(QueryBindingError):
        template.bind("a", "b")


def test_unbound_query_cannot_be_encoded_or_evaluated() -> None:
    template = compile_query("Id == $", "$")
    with pytest.raises(QueryBindingError, match="unbound"):
        template.to_dict()
    with pytest.raises(QueryBindingError):
        template.matches({"id": "a"})


def test_matches_resolves_fields_loosely() -> None:
    query = compile_query('Name == "alpha" and Information.Branch == "main"')
    record = {"name": "alpha", "information": {"branch": "main"}}
    assert query.matches(record)
    assert not query.matches({"name": "alpha", "information": {"branch": "dev"}})
    assert compile_query("ParentId == 'p'").matches({"parent_id": "p"})


def test_matches_unknown_field_is_an_evaluation_error() -> None:
    with pytest.raises(QueryEvaluationError, match="Colour"):
        compile_query('Colour == "red"').matches({"id": "x"})


def test_matches_incomparable_values() -> None:
    with pytest.raises(QueryEvaluationError):
        compile_query("Name < 3").matches({"name": "x"})


def test_wire_form_round_trips() -> None:
    query = compile_query('not (Length > 3) and (Name == "a" or Executable)')
    rebuilt = query_from_dict(query.to_dict())
    assert rebuilt.expression == query.expression
    record = {"length": 2, "name": "b", "executable": True}
    assert rebuilt.matches(record) is query.matches(record) is True


def test_query_from_dict_rejects_garbage() -> None:
    with pytest.raises(QueryEvaluationError):
        query_from_dict({"op": "=~", "left": {"value": 1}, "right": {"value": 1}})
    with pytest.raises(QueryEvaluationError):
        query_from_dict({"bogus": True})


def test_compile_search_explains_parse_failures() -> None:
    with pytest.raises(MalformedQueryError) as excinfo:
        compile_search("Name ==")
    assert str(excinfo.value).startswith("Malformed search query:")
    assert isinstance(excinfo.value.__cause__, QueryParseError)
    assert "unexpected end of query" in str(excinfo.value)
