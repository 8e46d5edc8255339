"""
Execution engine: runs one extracted player function against one string.

Every call gets its own dukpy interpreter, so nothing defined by one script
version can leak into the next call.
"""
from __future__ import annotations
import logging
import re
import time

import dukpy

from .errors import (
    CompilationError, FunctionNotFound, InvalidReturnType, ScriptRuntimeError,
)
from ..config import Settings

log = logging.getLogger("playercipher.cipher.engine")

_NAME_RE = re.compile(r"^[a-zA-Z_$][a-zA-Z_0-9$]*$")

_SELF_CHECK_SCRIPT = """
function testFunction(input) {
    return input.split('').reverse().join('');
}
"""


class JSEngine:
    def __init__(self, *, soft_budget_ms: float | None = None, hard_budget_ms: float | None = None):
        settings = Settings()
        self.soft_budget_ms = settings.soft_budget_ms if soft_budget_ms is None else soft_budget_ms
        self.hard_budget_ms = settings.hard_budget_ms if hard_budget_ms is None else hard_budget_ms

    def clone(self) -> "JSEngine":
        """Fresh, independent engine with the same budgets."""
        return JSEngine(soft_budget_ms=self.soft_budget_ms, hard_budget_ms=self.hard_budget_ms)

    def run(self, prelude: str, function_name: str, argument: str) -> str:
        if not _NAME_RE.match(function_name):
            raise FunctionNotFound(function_name)

        start = time.perf_counter()
        interp = dukpy.JSInterpreter()

        try:
            # completion value must be JSON-encodable
            interp.evaljs(prelude + "\n;null;")
        except dukpy.JSRuntimeError as e:
            raise CompilationError(str(e)) from e

        if not interp.evaljs(f"typeof {function_name} === 'function'"):
            raise FunctionNotFound(function_name)

        try:
            result = interp.evaljs(f"{function_name}(dukpy['arg'])", arg=argument)
        except dukpy.JSRuntimeError as e:
            raise ScriptRuntimeError(str(e)) from e

        if not isinstance(result, str):
            raise InvalidReturnType(result)

        self._check_budget(function_name, (time.perf_counter() - start) * 1000)
        return result

    def _check_budget(self, function_name: str, elapsed_ms: float):
        if elapsed_ms > self.hard_budget_ms:
            log.error(f"{function_name}() took {elapsed_ms:.1f}ms, over the {self.hard_budget_ms:.0f}ms limit")
        elif elapsed_ms > self.soft_budget_ms:
            log.warning(f"{function_name}() took {elapsed_ms:.1f}ms, target is <{self.soft_budget_ms:.0f}ms")

    # ── convenience wrappers ─────────────────

    def execute_cipher_function(self, script: str, function_name: str, signature: str) -> str:
        return self.run(script, function_name, signature)

    def execute_n_transform_function(self, script: str, function_name: str, n_parameter: str) -> str:
        return self.run(script, function_name, n_parameter)

    def self_check(self):
        """Reverse "hello" through the interpreter; raises on any mismatch."""
        result = self.run(_SELF_CHECK_SCRIPT, "testFunction", "hello")
        if result != "olleh":
            raise ScriptRuntimeError(f"Engine check failed: expected 'olleh', got {result!r}")
        log.info(f"JavaScript engine check passed: 'hello' -> {result!r}")
