"""
Player script parser: locates the signature / n transform code in a minified
player script so it can be executed later.

Each fragment has its own narrowly scoped pattern. When the player format
drifts, add a new pattern variant next to the existing one (see the current /
legacy n-function pair) instead of editing the old one.
"""
from __future__ import annotations
import logging
import re

from .base import ExtractedCipher
from .errors import ExtractionError

log = logging.getLogger("playercipher.cipher.parser")

_IDENT = r"[a-zA-Z_$][a-zA-Z_0-9$]*"
_STR = r"""(?:"[^"\\]*(?:\\.[^"\\]*)*"|'[^'\\]*(?:\\.[^'\\]*)*')"""

_TIMESTAMP_RE = re.compile(r"(signatureTimestamp|sts):\s*(\d+)")

_GLOBAL_VARS_RE = re.compile(
    r"""
    ('use\s*strict';)?
    (?P<code>var\s*(?P<varname>[a-zA-Z0-9_$]+)\s*=\s*
    (?P<value>""" + _STR + r"""\.split\(""" + _STR + r"""\)
    |\[(?:""" + _STR + r"""\s*,?\s*)*\]
    ))
    """,
    re.VERBOSE,
)

# one helper member: name: function(...) { body with at most one nested {} level }
_ACTION_MEMBER = r"[$A-Za-z0-9_]+\s*:\s*function\s*\([^)]*\)\s*\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}"

_SIG_ACTIONS_RE = re.compile(
    r"var\s+([$A-Za-z0-9_]+)\s*=\s*\{\s*"
    + _ACTION_MEMBER + r"\s*,\s*"
    + _ACTION_MEMBER + r"\s*,\s*"
    + _ACTION_MEMBER + r"\s*\};"
)

_SIG_FUNCTION_RE = re.compile(
    r"function(?:\s+" + _IDENT + r")?"
    r"\((" + _IDENT + r")\)"
    r"\{" + _IDENT + "=" + _IDENT + r".*?\(" + _IDENT + r",\d+\);"
    r"return\s*" + _IDENT + r".*\};"
)

_N_FUNCTION_RE = re.compile(
    r"function\(\s*(" + _IDENT + r")\s*\)\s*\{"
    r"var\s*(" + _IDENT + r")=" + _IDENT + r"\[" + _IDENT + r"\[\d+\]\]\(" + _IDENT + r"\[\d+\]\)"
    r".*?catch\(\s*(\w+)\s*\)\s*\{"
    r"\s*return.*?\+\s*" + _IDENT + r"\s*\}"
    r"\s*return\s*" + _IDENT + r"\[" + _IDENT + r"\[\d+\]\]\(" + _IDENT + r"\[\d+\]\)\};",
    re.DOTALL,
)

# older players: plain \w names for the argument / local / returned object
_N_FUNCTION_LEGACY_RE = re.compile(
    r"function\(\s*(\w+)\s*\)\s*\{"
    r"var\s*(\w+)=\w+\[" + _IDENT + r"\[\d+\]\]\(" + _IDENT + r"\[\d+\]\)"
    r".*?catch\(\s*(\w+)\s*\)\s*\{"
    r"\s*return.*?\+\s*\w+\s*\}"
    r"\s*return\s*\w+\[" + _IDENT + r"\[\d+\]\]\(" + _IDENT + r"\[\d+\]\)\};",
    re.DOTALL,
)

_N_FUNCTION_PATTERNS = (
    ("current", _N_FUNCTION_RE),
    ("legacy", _N_FUNCTION_LEGACY_RE),
)

_PARAM_RE = re.compile(r"function\s*\(\s*([^)]+)\s*\)")


def extract_timestamp(script: str) -> str:
    m = _TIMESTAMP_RE.search(script)
    if not m:
        raise ExtractionError("timestamp", "Timestamp not found in script")
    return m.group(2)


def extract_global_vars(script: str) -> str:
    """Return the `var X = ...` statement defining the table the transforms index into."""
    m = _GLOBAL_VARS_RE.search(script)
    if not m:
        raise ExtractionError("global_vars", "Global variables not found in script")
    return m.group("code")


def extract_sig_actions(script: str) -> str:
    m = _SIG_ACTIONS_RE.search(script)
    if not m:
        raise ExtractionError("sig_actions", "Signature actions not found in script")
    return m.group(0)


def extract_sig_function(script: str) -> str:
    m = _SIG_FUNCTION_RE.search(script)
    if not m:
        raise ExtractionError("sig_function", "Signature function not found in script")
    return m.group(0)


def extract_n_function(script: str) -> str:
    for variant, pattern in _N_FUNCTION_PATTERNS:
        m = pattern.search(script)
        if m:
            log.debug(f"n function matched {variant} pattern")
            return m.group(0)
    raise ExtractionError("n_function", "N parameter function not found in script")


def extract_parameter_name(function: str) -> str:
    m = _PARAM_RE.search(function)
    if not m:
        return "a"
    return m.group(1).strip()


def clean_n_function(n_function: str) -> str:
    """
    Strip the `if (typeof X === ...) return <param>;` guard that makes the
    extracted function hand its input back untouched.
    """
    param = extract_parameter_name(n_function)
    guard = re.compile(
        r"if\s*\(\s*typeof\s+\w+\s*===?\s*[^)]+\)\s*return\s+"
        + re.escape(param) + r"(?![\w$])\s*;?"
    )
    return guard.sub("", n_function)


def extract_cipher(script: str) -> ExtractedCipher:
    """
    Pull every fragment out of a player script. Fails on the first missing
    fragment; partial results are never returned.
    """
    timestamp = extract_timestamp(script)
    global_vars = extract_global_vars(script)
    sig_actions = extract_sig_actions(script)
    sig_function = extract_sig_function(script)
    n_function = extract_n_function(script)

    return ExtractedCipher(
        timestamp=timestamp,
        global_vars=global_vars,
        sig_actions=sig_actions,
        sig_function=sig_function,
        n_function=clean_n_function(n_function),
        raw_script=script,
    )
