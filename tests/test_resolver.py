import pytest

from phplite.semantics import bound
from phplite.semantics.symbols import ParameterSymbol, SourceFunctionSymbol, TypeSymbol, VariableKind
from phplite_lsp.resolver import resolve

from conftest import ROOT, compile_source, position_of

A = ROOT + "/a.php"

SOURCE = """<?php
/** Adds two numbers. */
function add(int $a, $b = 2) {
    $sum = $a + $b;
    return $sum;
}
class Point {}
echo add(1);
"""


@pytest.fixture(scope="module")
def compilation():
    return compile_source(SOURCE)


def _resolve(compilation, needle, occurrence=0, delta=0):
    line, character = position_of(SOURCE, needle, occurrence, delta)
    return resolve(compilation, A, line, character)


def test_parameter_declaration(compilation):
    stat = _resolve(compilation, "$a", occurrence=0, delta=1)
    assert isinstance(stat.symbol, ParameterSymbol) and stat.symbol.name == "a"
    assert stat.bound_expression is None
    assert stat.type_ctx.routine_name == "add"


def test_parameter_type_hint_resolves_to_the_parameter(compilation):
    stat = _resolve(compilation, "int $a")
    assert isinstance(stat.symbol, ParameterSymbol) and stat.symbol.name == "a"


def test_parameter_use_in_body(compilation):
    stat = _resolve(compilation, "$a + $b", delta=1)
    assert isinstance(stat.bound_expression, bound.BoundVariableRef)
    assert stat.bound_expression.kind is VariableKind.PARAMETER


def test_local_variable(compilation):
    stat = _resolve(compilation, "$sum", occurrence=1)
    assert isinstance(stat.bound_expression, bound.BoundVariableRef)
    assert stat.bound_expression.name == "sum"
    assert stat.bound_expression.kind is VariableKind.LOCAL


def test_call_resolves_to_its_target(compilation):
    stat = _resolve(compilation, "add(1)", delta=1)
    assert isinstance(stat.bound_expression, bound.BoundFunctionCall)
    assert isinstance(stat.symbol, SourceFunctionSymbol)
    assert stat.type_ctx.routine_name == "{main}"


def test_literals_are_not_searchable(compilation):
    assert _resolve(compilation, "add(1)", delta=4) is None


def test_function_declaration_name(compilation):
    stat = _resolve(compilation, "function add", delta=10)
    assert isinstance(stat.symbol, SourceFunctionSymbol)
    assert stat.bound_expression is None


def test_class_declaration_name(compilation):
    stat = _resolve(compilation, "Point", delta=2)
    assert isinstance(stat.symbol, TypeSymbol) and stat.symbol.name == "Point"


@pytest.mark.parametrize(
    "line,character",
    [(0, 1), (99, 0), (2, 500), (-1, 0)],
)
def test_nothing_to_resolve(compilation, line, character):
    assert resolve(compilation, A, line, character) is None


def test_unknown_file(compilation):
    assert resolve(compilation, ROOT + "/missing.php", 0, 0) is None


def test_uri_is_accepted(compilation):
    line, character = position_of(SOURCE, "$sum", occurrence=1)
    stat = resolve(compilation, "file://" + A, line, character)
    assert stat.bound_expression.name == "sum"


def test_parameter_wins_over_a_body_variable_of_the_same_name():
    source = "<?php function f($a, $b) { $b = $b + 1; return $b; }"
    line, character = position_of(source, "$b", occurrence=0, delta=1)
    stat = resolve(compile_source(source), A, line, character)
    assert isinstance(stat.symbol, ParameterSymbol) and stat.symbol.name == "b"
    assert stat.bound_expression is None
