"""Query-string rewriting shared by the advanced and basic ciphers."""
from __future__ import annotations
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit


def replace_query_param(url: str, key: str, value: str) -> str:
    """Drop every existing `key` pair and append `key=value` at the end."""
    parts = urlsplit(url)
    pairs = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != key]
    pairs.append((key, value))
    return urlunsplit(parts._replace(query=urlencode(pairs, quote_via=quote)))


def with_signature(url: str, signature_key: str, signature: str) -> str:
    return replace_query_param(url, signature_key, signature)


def with_n_parameter(url: str, n_value: str) -> str:
    return replace_query_param(url, "n", n_value)
