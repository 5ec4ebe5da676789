import math

import pytest
from hypothesis import given, strategies as st

from phplite_lsp.resolver import SymbolStat, resolve
from phplite_lsp.tooltip import format_documentation, format_literal, format_tooltip

from conftest import ROOT, compile_source, position_of


def hover(source, needle, occurrence=0, delta=0):
    line, character = position_of(source, needle, occurrence, delta)
    return format_tooltip(resolve(compile_source(source), ROOT + "/a.php", line, character))


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, "NULL"),
        (True, "TRUE"),
        (False, "FALSE"),
        (0, "0"),
        (-12, "-12"),
        (3.14, "3.14"),
        (1.0, "1"),
        (-2.5, "-2.5"),
        (0.0001, "0.0001"),
        (1e-05, "1E-05"),
        (123456789012345.0, "123456789012345"),
        (1e15, "1E+15"),
        (1e20, "1E+20"),
        (-1.5e300, "-1.5E+300"),
        (float("inf"), "Infinity"),
        (float("nan"), "NaN"),
        ("hi", '"hi"'),
        ('say "hi"\n', '"say \\"hi\\"\\n"'),
        ([], None),
    ],
)
def test_format_literal(value, expected):
    assert format_literal(value) == expected


@given(st.integers())
def test_integers_print_as_digits(value):
    assert format_literal(value) == str(value)


@given(st.floats(allow_nan=False, allow_infinity=False))
def test_floats_print_round_trippable(value):
    assert float(format_literal(value)) == value


def test_format_documentation():
    doc = "Adds.\n@param int $a The first.\n@param $b The second."
    assert format_documentation(doc) == "Adds.\n**$a:** The first.\n**$b:** The second."


@pytest.mark.parametrize(
    "source,needle,delta,expected",
    [
        ("<?php $x = 1; echo $x;", "$x;", 1, "(global) $x : int"),
        ("<?php function f() { $v = 'a'; return $v; }", "$v;", 1, "(var) $v : string"),
        ("<?php function f() { static $n = 0; return $n; }", "$n =", 1, "(static local) $n : int"),
        ("<?php function f(?int $p) { return $p; }", "$p;", 1, "(parameter) $p : null|int"),
        ("<?php function f(?int $p) { return $p; }", "$p)", 1, "(parameter) $p : null|int"),
        ("<?php const GREETING = 'hi'; echo GREETING;", "GREETING;", 0, '(const) GREETING : string = "hi"'),
        ("<?php echo PHP_INT_SIZE;", "PHP_INT_SIZE", 0, "(const) PHP_INT_SIZE : int = 8"),
        ("<?php echo NOPE;", "NOPE", 0, "(const) NOPE : mixed"),
        ("<?php function f() { return __FUNCTION__; }", "__FUNCTION__", 0, '(magic const) __FUNCTION__ : string = "f"'),
        ("<?php echo __LINE__;", "__LINE__", 0, "(magic const) __LINE__ : int = 1"),
        ("<?php function f($a, $b = 1, $c = 2) {} f(1);", "f(1)", 0, "function f($a[, $b[, $c]]) : void"),
        ("<?php function f($a, $b = 1, $c = 2) {}", "f(", 0, "function f($a[, $b[, $c]]) : void"),
        ("<?php class P {} $p = new P();", "P()", 0, "class P"),
        ("<?php interface Shape {} echo Shape::class;", "Shape::", 0, "interface Shape"),
        ("<?php trait T {} echo T::class;", "T::", 0, "trait T"),
        ("<?php interface Shape {} echo Shape::class;", "class;", 0, '(const) Shape::class : string = "Shape"'),
    ],
)
def test_tooltips(source, needle, delta, expected):
    assert hover(source, needle, delta=delta) == expected


FIELDS = """<?php
class P {
    public int $x = 0;
    const MAX = 10;
    public static $count = 0;
}
$p = new P();
echo $p->x, P::MAX, P::$count, $q->y;
"""


@pytest.mark.parametrize(
    "needle,expected",
    [
        ("x,", "var P::$x : int"),
        ("MAX,", "(const) P::MAX : int = 10"),
        ("$count,", "static P::$count : int"),
    ],
)
def test_field_tooltips(needle, expected):
    assert hover(FIELDS, needle) == expected


def test_field_on_unknown_instance_has_no_tooltip():
    assert hover(FIELDS, "y;") is None


def test_library_function_documentation():
    text = hover("<?php echo strlen('x');", "strlen")
    title, doc = text.split("\n\n", 1)
    assert title == "function strlen($string) : int"
    assert doc == "Returns the length of the given string.\n**$string:** The string being measured for length."


def test_method_call_documentation():
    source = "<?php class C { /** Says hi. */ public function hi($name) { return 'hi'; } } $c = new C(); $c->hi('x');"
    assert hover(source, "hi('x')") == "function hi($name) : string\n\nSays hi."


def test_missing_function_has_no_tooltip():
    assert hover("<?php nope();", "nope") is None


def test_ambiguous_call_shows_the_last_candidate():
    source = "<?php if ($a) { function g($x) {} } else { function g($x, $y) {} } g(1);"
    assert hover(source, "g(1)") == "function g($x, $y) : void"


def test_empty_stat_has_no_tooltip():
    assert format_tooltip(None) is None
    assert format_tooltip(SymbolStat(None)) is None


def test_float_constant():
    assert hover("<?php echo M_PI;", "M_PI") == f"(const) M_PI : float = {math.pi!r}"
