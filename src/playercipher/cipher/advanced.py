"""
Advanced signature cipher: executes the transform functions extracted from a
specific player script version.

Usage:
    cipher = AdvancedSignatureCipher.from_script(player_js)
    cipher.test_cipher()
    url = cipher.decipher_url(fmt)
"""
from __future__ import annotations
import logging
import re
import time
from typing import Optional

from .anomalies import detect_n_anomaly
from .base import ExtractedCipher, StreamFormat
from .engine import JSEngine
from .errors import EngineError, SelfTestFailure
from .parser import extract_cipher
from .urls import with_n_parameter, with_signature

log = logging.getLogger("playercipher.cipher.advanced")

SIG_FUNCTION_NAME = "sig"
N_FUNCTION_NAME = "n"

SELF_TEST_SIGNATURE = "abcdefghijklmnopqrstuvwxyz0123456789"
SELF_TEST_N = "abc123def456"

_NAMED_FUNCTION_RE = re.compile(r"^\s*function\s+([a-zA-Z_$][a-zA-Z_0-9$]*)\s*\(")
_ANON_FUNCTION_RE = re.compile(r"^\s*function\s*\(")


def bind_entry_point(source: str, name: str) -> str:
    """
    Make `source` define a global function called `name`.

    function(a){...}     -> var name = function(a){...}
    function xY(a){...}  -> function xY(a){...} var name = xY;
    """
    if re.match(r"^\s*(?:var\s+)?" + re.escape(name) + r"\s*=", source):
        return source
    if _ANON_FUNCTION_RE.match(source):
        return f"var {name} = {source.strip()}"
    m = _NAMED_FUNCTION_RE.match(source)
    if m:
        return f"{source}\nvar {name} = {m.group(1)};"
    return source


class AdvancedSignatureCipher:
    def __init__(self, extracted_cipher: ExtractedCipher, js_engine: Optional[JSEngine] = None):
        self.extracted_cipher = extracted_cipher
        self.js_engine = js_engine or JSEngine()
        ec = extracted_cipher
        self._sig_script = "\n".join([
            ec.global_vars, ec.sig_actions, bind_entry_point(ec.sig_function, SIG_FUNCTION_NAME)])
        self._n_script = "\n".join([
            ec.global_vars, bind_entry_point(ec.n_function, N_FUNCTION_NAME)])

    @classmethod
    def from_script(cls, script: str, js_engine: Optional[JSEngine] = None) -> "AdvancedSignatureCipher":
        return cls(extract_cipher(script), js_engine)

    @classmethod
    def from_extracted_cipher(cls, extracted_cipher: ExtractedCipher,
                              js_engine: Optional[JSEngine] = None) -> "AdvancedSignatureCipher":
        return cls(extracted_cipher, js_engine)

    @property
    def timestamp(self) -> str:
        return self.extracted_cipher.timestamp

    def __repr__(self):
        return f"AdvancedSignatureCipher(timestamp={self.timestamp!r})"

    # ── transforms ───────────────────────────

    def decipher_signature(self, signature: str) -> str:
        start = time.perf_counter()
        result = self.js_engine.run(self._sig_script, SIG_FUNCTION_NAME, signature)
        elapsed = (time.perf_counter() - start) * 1000
        log.debug(f"Signature deciphered in {elapsed:.1f}ms: {signature!r} -> {result!r}")
        return result

    def transform_n_parameter(self, n_param: str) -> str:
        start = time.perf_counter()
        result = self.js_engine.run(self._n_script, N_FUNCTION_NAME, n_param)
        elapsed = (time.perf_counter() - start) * 1000

        anomaly = detect_n_anomaly(n_param, result)
        if anomaly:
            log.warning(f"N parameter transformation {anomaly}: {n_param!r} -> {result!r}")
        else:
            log.debug(f"N parameter transformed in {elapsed:.1f}ms: {n_param!r} -> {result!r}")
        return result

    def decipher_url(self, fmt: StreamFormat) -> str:
        url = fmt.url
        if fmt.signature is not None:
            url = with_signature(url, fmt.effective_signature_key, self.decipher_signature(fmt.signature))
        if fmt.n_parameter is not None:
            url = with_n_parameter(url, self.transform_n_parameter(fmt.n_parameter))
        return url

    # ── validation ───────────────────────────

    def test_cipher(self):
        """
        Run both transforms once on fixed samples. Raises SelfTestFailure when
        either one errors; an unchanged result is only logged.
        """
        try:
            sig = self.decipher_signature(SELF_TEST_SIGNATURE)
            n = self.transform_n_parameter(SELF_TEST_N)
        except EngineError as e:
            raise SelfTestFailure(f"Cipher self-test failed ({type(e).__name__}): {e}") from e

        if sig == SELF_TEST_SIGNATURE:
            log.warning("Cipher self-test: signature unchanged (may be identity function)")
        if n == SELF_TEST_N:
            log.warning("Cipher self-test: n parameter unchanged (may be identity function)")
        log.info(f"Cipher self-test passed for player timestamp {self.timestamp}")
