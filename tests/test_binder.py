import pytest

from phplite import diagnostics
from phplite.diagnostics import Severity
from phplite.semantics.symbols import NO_VALUE, ErrorMethodKind, ErrorMethodSymbol, LibraryFunctionSymbol
from phplite.semantics.types import ANY, TypeContext, TypeMask, mask_from_hint
from phplite.semantics import bound

from conftest import compile_source


def _codes(source):
    return [d.code for d in compile_source(source).get_diagnostics()]


def _function(compilation, name):
    [routine] = compilation.model.find_functions(name)
    return routine


@pytest.mark.parametrize(
    "source,code",
    [
        ("<?php foo();", diagnostics.UNDEFINED_FUNCTION),
        ("<?php new Missing();", diagnostics.UNDEFINED_CLASS),
        ("<?php echo NOPE;", diagnostics.UNDEFINED_CONSTANT),
        ("<?php function f() { return $x; }", diagnostics.UNDEFINED_VARIABLE),
        ("<?php function f($a, $b) {} f(1);", diagnostics.TOO_FEW_ARGUMENTS),
        ("<?php class A {} $a = new A(); $a->go();", diagnostics.UNDEFINED_METHOD),
        ("<?php class A {} echo A::X;", diagnostics.UNDEFINED_CLASS_CONSTANT),
        ("<?php class A {} class A {}", diagnostics.DUPLICATE_TYPE),
        ("<?php class A extends Nowhere {}", diagnostics.UNDEFINED_CLASS),
    ],
)
def test_semantic_diagnostics(source, code):
    assert code in _codes(source)


@pytest.mark.parametrize(
    "source",
    [
        "<?php echo strlen('abc');",
        "<?php echo PHP_EOL;",
        "<?php $e = new Exception('x'); echo $e->getMessage();",
        "<?php echo $undefinedInMain;",
        "<?php function f() { str_replace('a', 'b', 'c', $n); return $n; }",
        "<?php function f() { global $g; return $g; }",
        "<?php function f() { static $n = 0; $n++; return $n; }",
        "<?php function f() { foreach ([1, 2] as $k => $v) { echo $k, $v; } }",
        "<?php echo compact('a');",
        "<?php class A { const X = 1; } echo A::X, A::class;",
        "<?php class A { public function f() { return $this->g(); } public function g() { return 1; } }",
        "<?php interface I { public function f(); } abstract class B implements I {} function h(B $b) { return $b->f(); }",
    ],
)
def test_clean_sources_have_no_visible_diagnostics(source):
    visible = [d for d in compile_source(source).get_diagnostics() if d.is_visible]
    assert visible == []


def test_undefined_function_is_reported_on_the_name():
    [d] = compile_source("<?php foo();").get_diagnostics()
    assert d.severity is Severity.ERROR
    assert d.start == (0, 6) and d.end == (0, 9)
    assert d.message == "Call to undefined function foo()"


def test_undefined_variable_is_a_warning_reported_once():
    source = "<?php function f() { echo $x; echo $x; }"
    found = [d for d in compile_source(source).get_diagnostics() if d.code == diagnostics.UNDEFINED_VARIABLE]
    assert len(found) == 1
    assert found[0].severity is Severity.WARNING


def test_unreachable_code_is_hidden():
    source = "<?php function f() { return 1; echo 2; }"
    [d] = compile_source(source).get_diagnostics()
    assert d.code == diagnostics.UNREACHABLE_CODE
    assert not d.is_visible


def test_code_after_break_is_unreachable():
    source = "<?php while (true) { break; echo 1; }"
    codes = _codes(source)
    assert codes == [diagnostics.UNREACHABLE_CODE]


def test_duplicate_functions_are_ambiguous():
    source = "<?php if ($a) { function g() {} } else { function g($x) {} } g();"
    compilation = compile_source(source)
    found = [d for d in compilation.get_diagnostics() if d.code == diagnostics.AMBIGUOUS_FUNCTION]
    assert len(found) == 1 and found[0].severity is Severity.WARNING
    main = compilation.model.routines_in_tree("/proj/a.php")[0]
    body = compilation.model.bound_body(main)
    [call] = [
        s.expression for b in body.cfg.blocks for s in b.statements
        if isinstance(s, bound.BoundExpressionStatement)
    ]
    assert isinstance(call.target, ErrorMethodSymbol)
    assert call.target.error_kind is ErrorMethodKind.AMBIGUOUS
    assert [len(r.parameters) for r in call.target.original_symbols] == [0, 1]


def test_library_functions_are_linked():
    compilation = compile_source("<?php strlen('x');")
    routine = _function(compilation, "STRLEN")
    assert isinstance(routine, LibraryFunctionSymbol)
    assert routine.get_result_type() == TypeMask.of("int")
    assert "length of the given string" in routine.get_documentation()


def test_context_parameter_is_implicit():
    routine = _function(compile_source("<?php"), "compact")
    assert routine.parameters[0].is_implicit
    assert routine.min_arguments == 1


@pytest.mark.parametrize(
    "body,expected",
    [
        ("return 1 + 2;", "int"),
        ("return 1 / 2;", "float"),
        ("return 4 / 2;", "int"),
        ("return 1.5 * 2;", "float"),
        ("return 'a' . 1;", "string"),
        ("return $p > 1;", "bool"),
        ("$x = 1; $x = 'a'; return $x;", "int|string"),
        ("return [1];", "array"),
        ("return new Exception();", "Exception"),
        ("return null;", "null"),
        ("if ($p) { return 1; } return 'a';", "int|string"),
        ("echo 1;", "void"),
        ("return $p;", "mixed"),
        ("return (string) $p;", "string"),
        ("return strlen($p);", "int"),
        ("return __FUNCTION__;", "string"),
    ],
)
def test_inferred_result_type(body, expected):
    compilation = compile_source(f"<?php function f($p) {{ {body} }}")
    routine = _function(compilation, "f")
    assert TypeContext("f").to_string(routine.get_result_type()) == expected


def test_declared_result_type_wins():
    compilation = compile_source("<?php function f(): ?string { return 1; }")
    assert _function(compilation, "f").get_result_type() == TypeMask.of("string", "null")


def test_recursive_routine_terminates():
    compilation = compile_source("<?php function f($n) { return f($n - 1); }")
    assert _function(compilation, "f").get_result_type() == ANY


@pytest.mark.parametrize(
    "decl,value",
    [
        ("const A = 2 * 21;", 42),
        ("const A = 'a' . 1;", "a1"),
        ("const A = -5 % 3;", -2),
        ("const A = 7 / 2;", 3.5),
        ("const A = !0;", True),
        ("const A = null;", None),
        ("const A = PHP_INT_SIZE * 2;", 16),
        ("const A = 1.5 . '';", "1.5"),
    ],
)
def test_constant_folding(decl, value):
    compilation = compile_source(f"<?php {decl}")
    model = compilation.model
    assert model.constant_value(model.find_constant("A")) == value


def test_class_constants_fold_through_self():
    compilation = compile_source("<?php class K { const X = 5; const Y = self::X + 1; }")
    model = compilation.model
    assert model.constant_value(model.find_type("k").find_constant("Y")) == 6


def test_cyclic_constants_have_no_value():
    compilation = compile_source("<?php const A = B; const B = A;")
    model = compilation.model
    assert model.constant_value(model.find_constant("A")) is NO_VALUE


def test_variable_kinds():
    source = "<?php $g = 1; function f($p) { global $h; static $s; $l = 1; return [$p, $h, $s, $l]; }"
    compilation = compile_source(source)
    model = compilation.model
    main, f = model.routines_in_tree("/proj/a.php")
    assert model.bound_body(main).locals["g"].kind.value == "global"
    kinds = {name: var.kind.value for name, var in model.bound_body(f).locals.items()}
    assert kinds == {"p": "parameter", "h": "global", "s": "static", "l": "local"}


def test_routines_in_tree_order():
    source = "<?php class A { function m() {} } function f() {} function g() {}"
    routines = compile_source(source).model.routines_in_tree("/proj/a.php")
    assert [r.name for r in routines] == ["{main}", "m", "f", "g"]
    assert routines[0].is_global_scope


def test_methods_resolve_through_inheritance_and_traits():
    source = """<?php
trait T { public function fromTrait() { return 1; } }
class Base { public function fromBase() { return 'b'; } }
class Child extends Base { use T; }
$c = new Child();
$c->fromTrait();
$c->fromBase();
"""
    assert [d for d in compile_source(source).get_diagnostics() if d.is_visible] == []


def test_mask_from_hint():
    assert mask_from_hint("Integer") == TypeMask.of("int")
    assert mask_from_hint("self", self_type="Foo") == TypeMask.of("Foo")
    assert mask_from_hint("mixed") == ANY
    assert mask_from_hint("void").is_void
    assert mask_from_hint("int", nullable=True) == TypeMask.of("int", "null")


def test_type_context_ordering():
    mask = TypeMask.of("Zed", "string", "null", "Alpha")
    assert TypeContext("f").to_string(mask) == "null|string|Alpha|Zed"


def test_foreach_binds_into_the_edge():
    compilation = compile_source("<?php foreach ([1] as $v) { echo $v; }")
    model = compilation.model
    body = model.bound_body(model.routines_in_tree("/proj/a.php")[0])
    edges = [b.next_edge for b in body.cfg.blocks if isinstance(b.next_edge, bound.ForeachEdge)]
    assert len(edges) == 1
    assert edges[0].value_variable.name == "v"
