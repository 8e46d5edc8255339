import logging

import pytest

from playercipher.cipher.engine import JSEngine
from playercipher.cipher.errors import (
    CompilationError, FunctionNotFound, InvalidReturnType, ScriptRuntimeError,
)


def test_simple_function_execution():
    engine = JSEngine()
    script = "function reverse(str) { return str.split('').reverse().join(''); }"
    assert engine.run(script, "reverse", "test") == "tset"


def test_cipher_like_operation():
    """reverse -> swap(0, 1) -> drop 2 on abcdefgh"""
    engine = JSEngine()
    script = """
        function decipher(signature) {
            var a = signature.split('');
            a.reverse();
            var temp = a[0];
            a[0] = a[1];
            a[1] = temp;
            a.splice(0, 2);
            return a.join('');
        }
    """
    assert engine.execute_cipher_function(script, "decipher", "abcdefgh") == "fedcba"


def test_n_parameter_transformation():
    engine = JSEngine()
    script = "function transformN(n) { return 'yt_' + n.split('').reverse().join(''); }"
    assert engine.execute_n_transform_function(script, "transformN", "abc123") == "yt_321cba"


def test_argument_is_passed_verbatim():
    engine = JSEngine()
    script = "function echo(s) { return s; }"
    tricky = "a'b\"c\\d\n%20&="
    assert engine.run(script, "echo", tricky) == tricky


def test_missing_function():
    engine = JSEngine()
    with pytest.raises(FunctionNotFound):
        engine.run("var sig = 1;", "sig", "x")
    with pytest.raises(FunctionNotFound):
        engine.run("function a(s) { return s; }", "missing", "x")
    with pytest.raises(FunctionNotFound):
        engine.run("function a(s) { return s; }", "a(1);b", "x")


def test_invalid_return_type():
    engine = JSEngine()
    with pytest.raises(InvalidReturnType):
        engine.run("function f(s) { return 42; }", "f", "x")
    with pytest.raises(InvalidReturnType):
        engine.run("function f(s) { }", "f", "x")


def test_compilation_error():
    engine = JSEngine()
    with pytest.raises(CompilationError):
        engine.run("function f(s) { return s; ", "f", "x")


def test_runtime_error():
    engine = JSEngine()
    with pytest.raises(ScriptRuntimeError):
        engine.run("function f(s) { throw new Error('boom'); }", "f", "x")


def test_calls_are_isolated():
    """A global defined by one call is gone in the next"""
    engine = JSEngine()
    assert engine.run("function leak(s) { return s; }", "leak", "x") == "x"
    with pytest.raises(FunctionNotFound):
        engine.run("var unrelated = 1;", "leak", "x")


def test_clone_is_independent():
    engine = JSEngine(soft_budget_ms=5, hard_budget_ms=10)
    copy = engine.clone()
    assert copy is not engine
    assert (copy.soft_budget_ms, copy.hard_budget_ms) == (5, 10)


def test_slow_call_warns_but_succeeds(caplog):
    engine = JSEngine(soft_budget_ms=-1, hard_budget_ms=1e9)
    with caplog.at_level(logging.WARNING, logger="playercipher.cipher.engine"):
        assert engine.run("function f(s) { return s; }", "f", "ok") == "ok"
    assert any("target is" in r.getMessage() for r in caplog.records)


def test_very_slow_call_alarms(caplog):
    engine = JSEngine(soft_budget_ms=-2, hard_budget_ms=-1)
    with caplog.at_level(logging.WARNING, logger="playercipher.cipher.engine"):
        engine.run("function f(s) { return s; }", "f", "ok")
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_self_check():
    JSEngine().self_check()


def test_prelude_ending_in_function_expression():
    """Assignment-style definitions leave a function as the completion value"""
    engine = JSEngine()
    assert engine.run("f = function(s){ return s + '!'; };", "f", "x") == "x!"
    assert engine.run("var g = 1;\nh = function(s){ return s; }", "h", "y") == "y"
