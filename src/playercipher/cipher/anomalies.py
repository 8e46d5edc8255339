"""
Heuristics for spotting a degraded n transform.

The player's own n function falls back to recognisable strings when its
internal lookup throws. These idioms change over time; add a new check to
N_ANOMALY_CHECKS rather than special-casing callers.
"""
from __future__ import annotations
from typing import Callable, Optional

AnomalyCheck = Callable[[str, str], Optional[str]]


def _unchanged(original: str, result: str) -> Optional[str]:
    if result == original:
        return "returned the input unchanged (possible short-circuit)"
    return None


def _exception_path(original: str, result: str) -> Optional[str]:
    if result.startswith("enhanced_except_") or result.endswith(f"_w8_{original}"):
        return "matches the exception-path pattern"
    return None


N_ANOMALY_CHECKS: list[AnomalyCheck] = [_unchanged, _exception_path]


def detect_n_anomaly(original: str, result: str) -> Optional[str]:
    """Return a description of the first anomaly found, or None."""
    for check in N_ANOMALY_CHECKS:
        reason = check(original, result)
        if reason:
            return reason
    return None
