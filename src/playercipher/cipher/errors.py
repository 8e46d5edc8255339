"""
Error taxonomy for the cipher subsystem.

Only NetworkError is meant to leave CipherManager; everything else is
recovered there by falling back to the basic cipher.
"""
from __future__ import annotations


class CipherError(Exception):
    pass


class ExtractionError(CipherError):
    """A required fragment could not be located in the player script."""

    def __init__(self, fragment: str, message: str | None = None):
        self.fragment = fragment
        super().__init__(message or f"{fragment} not found in player script")


# ──────────────────────────────
#  Execution engine
# ──────────────────────────────
class EngineError(CipherError):
    pass


class ScriptRuntimeError(EngineError):
    pass


class FunctionNotFound(EngineError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Function not found: {name}")


class InvalidReturnType(EngineError):
    def __init__(self, got: object):
        self.got = got
        super().__init__(f"Invalid return type: expected string, got {type(got).__name__}")


class CompilationError(EngineError):
    pass


# ──────────────────────────────
#  Manager level
# ──────────────────────────────
class NetworkError(CipherError):
    def __init__(self, url: str, reason: object = None):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch player script {url}: {reason}")


class SelfTestFailure(CipherError):
    pass


class NoSupportedFormat(CipherError):
    pass
