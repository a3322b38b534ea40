"""Runtime and session tests."""

import io

import pytest

from ze import Session, run
from ze.diagnostics import EXIT_OK, EXIT_RUNTIME_ERROR, EXIT_STATIC_ERROR
from ze.runtime import (
    Environment,
    VBool,
    VNil,
    VNumber,
    VString,
    ZeRuntimeError,
    is_truthy,
    values_equal,
)
from ze.tokens import TK_IDENT, Token


def _session() -> tuple[Session, io.StringIO, io.StringIO]:
    out = io.StringIO()
    err = io.StringIO()
    return Session(out, err), out, err


# ── Values ───────────────────────────────────────────────────


def test_truthiness():
    assert not is_truthy(VNil())
    assert not is_truthy(VBool(False))
    assert is_truthy(VBool(True))
    assert is_truthy(VNumber(0.0))
    assert is_truthy(VString(""))


def test_equality_never_crosses_variants():
    assert values_equal(VNil(), VNil())
    assert not values_equal(VNil(), VBool(False))
    assert not values_equal(VNumber(1.0), VString("1"))
    assert not values_equal(VBool(True), VNumber(1.0))
    assert values_equal(VString("a"), VString("a"))
    assert values_equal(VNumber(2.0), VNumber(2.0))


@pytest.mark.parametrize(
    "value,text",
    [
        (VNil(), "none"),
        (VBool(True), "true"),
        (VNumber(3.0), "3"),
        (VNumber(-0.5), "-0.5"),
        (VNumber(1e21), "1000000000000000000000"),
        (VNumber(0.1), "0.1"),
        (VString("raw"), "raw"),
    ],
)
def test_printed_form(value, text):
    assert value.to_string() == text


# ── Environments ─────────────────────────────────────────────


def test_environment_lookup_walks_parents():
    outer = Environment()
    outer.define("a", VNumber(1.0))
    inner = Environment(Environment(outer))
    name = Token(TK_IDENT, "a", None, 1)
    assert inner.get(name) == VNumber(1.0)
    assert inner.get_at(2, "a") == VNumber(1.0)
    inner.assign_at(2, name, VNumber(2.0))
    assert outer.values["a"] == VNumber(2.0)


def test_environment_undefined_name():
    env = Environment()
    with pytest.raises(ZeRuntimeError) as excinfo:
        env.get(Token(TK_IDENT, "missing", None, 4))
    assert excinfo.value.format() == "Undefined variable 'missing'.\n[line 4]"


# ── Sessions ─────────────────────────────────────────────────


def test_globals_persist_across_runs():
    session, out, _ = _session()
    assert session.run("var a = 1;").exit_code == EXIT_OK
    assert session.run("fun inc() { a = a + 1; return a; }").exit_code == EXIT_OK
    session.run("print inc();")
    session.run("print inc();")
    assert out.getvalue() == "2\n3\n"


def test_local_distances_persist_across_runs():
    session, out, _ = _session()
    session.run("fun make() { var n = 10; fun get() { return n; } return get; }")
    session.run("var g = make();")
    session.run("print g();")
    assert out.getvalue() == "10\n"


def test_errors_do_not_end_the_session():
    session, out, err = _session()
    diag = session.run("print ;")
    assert diag.had_error
    assert diag.exit_code == EXIT_STATIC_ERROR
    diag = session.run("print nope;")
    assert diag.had_runtime_error
    assert diag.exit_code == EXIT_RUNTIME_ERROR
    diag = session.run("print 1;")
    assert diag.ok()
    assert out.getvalue() == "1\n"
    assert err.getvalue() == (
        "[line 1] Error at ';': Expect expression.\n"
        "Undefined variable 'nope'.\n[line 1]\n"
    )


def test_each_run_gets_fresh_diagnostics():
    session, _, _ = _session()
    first = session.run("print ;")
    second = session.run("print 1;")
    assert first is not second
    assert first.had_error
    assert not second.had_error


def test_definitions_before_a_runtime_error_survive():
    session, out, _ = _session()
    session.run("var a = 1; print nope; var b = 2;")
    session.run("print a;")
    diag = session.run("print b;")
    assert out.getvalue() == "1\n"
    assert diag.runtime_error is not None
    assert diag.runtime_error.msg == "Undefined variable 'b'."


def test_run_captures_streams():
    result = run('print "hi";\nprint 1 / 0;')
    assert result.exit_code == EXIT_RUNTIME_ERROR
    assert result.stdout == "hi\n"
    assert result.stderr == "Divide by zero.\n[line 2]\n"


def test_recursive_calls_unwind():
    source = "fun down(n) { if (n == 0) return 0; return down(n - 1); }\nprint down(50);"
    result = run(source)
    assert result.stdout == "0\n"


def test_missing_ancestor_is_an_internal_error():
    with pytest.raises(AssertionError):
        Environment().ancestor(1)


def test_static_errors_follow_source_order():
    session, _, err = _session()
    diag = session.run("print ;\n@")
    assert [e.line for e in diag.static_errors] == [1, 2]
    assert err.getvalue() == (
        "[line 1] Error at ';': Expect expression.\n"
        "[line 2] Error: Unexpected character.\n"
    )


def test_session_survives_stack_overflow():
    session, out, err = _session()
    session.run("fun f(n) { return f(n + 1); }")
    diag = session.run("f(0);")
    assert diag.exit_code == EXIT_RUNTIME_ERROR
    assert diag.runtime_error is not None
    assert diag.runtime_error.msg == "Stack overflow."
    assert session.interpreter.environment is session.interpreter.globals
    diag = session.run("print 1;")
    assert diag.ok()
    assert out.getvalue() == "1\n"
    assert err.getvalue() == "Stack overflow.\n[line 1]\n"
