"""
Basic (fallback) signature cipher.

A fixed list of array operations applied to the signature characters. The
default plan is a guess, not something read from the player script, so a URL
built here is best-effort only.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Union

from .base import StreamFormat
from .urls import with_n_parameter, with_signature

log = logging.getLogger("playercipher.cipher.operations")


@dataclass(frozen=True)
class Reverse:
    pass


@dataclass(frozen=True)
class Swap:
    index: int                        # exchanged with element 0


@dataclass(frozen=True)
class Slice:
    index: int                        # number of leading elements dropped


CipherOperation = Union[Reverse, Swap, Slice]

DEFAULT_OPERATIONS: tuple[CipherOperation, ...] = (Reverse(), Swap(1), Slice(2))


def apply_operations(chars: list[str], operations) -> list[str]:
    for op in operations:
        if isinstance(op, Reverse):
            chars.reverse()
        elif isinstance(op, Swap):
            # out of range: skip the step, keep going
            if 0 <= op.index < len(chars):
                chars[0], chars[op.index] = chars[op.index], chars[0]
        elif isinstance(op, Slice):
            if 0 <= op.index < len(chars):
                chars = chars[op.index:]
        else:
            raise TypeError(f"Unknown cipher operation: {op!r}")
    return chars


class SignatureCipher:
    def __init__(self, operations):
        self.operations: tuple[CipherOperation, ...] = tuple(operations)

    @classmethod
    def default(cls) -> "SignatureCipher":
        return cls(DEFAULT_OPERATIONS)

    def __repr__(self):
        return f"SignatureCipher({list(self.operations)!r})"

    def decipher_signature(self, signature: str) -> str:
        return "".join(apply_operations(list(signature), self.operations))

    def transform_n_parameter(self, n_param: str) -> str:
        return "yt_" + n_param[::-1]

    def decipher_url(self, fmt: StreamFormat) -> str:
        url = fmt.url
        if fmt.signature is not None:
            url = with_signature(url, fmt.effective_signature_key, self.decipher_signature(fmt.signature))
        if fmt.n_parameter is not None:
            url = with_n_parameter(url, self.transform_n_parameter(fmt.n_parameter))
        log.debug(f"Basic cipher resolved {fmt.url} -> {url}")
        return url
