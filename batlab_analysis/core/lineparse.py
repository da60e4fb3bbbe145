# batlab_analysis/core/lineparse.py
from __future__ import annotations
import re

# strtod-compatible decimal literal (hex floats are never written by the logger)
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def _value_start(line: str, key: str) -> int | None:
    """Index just past ``"key":`` and any spaces/tabs, or None if the key is absent."""
    pattern = f'"{key}":'
    pos = line.find(pattern)
    if pos < 0:
        return None
    pos += len(pattern)
    while pos < len(line) and line[pos] in " \t":
        pos += 1
    return pos


def extract_number(line: str, key: str) -> float:
    """
    Numeric value of ``key`` in a flat JSON line.

    Missing keys and unparseable values both give 0.0; anything after the
    numeric prefix is ignored.
    """
    start = _value_start(line, key)
    if start is None:
        return 0.0
    m = _FLOAT_RE.match(line, start)
    if m is None:
        return 0.0
    return float(m.group(0))


def extract_string(line: str, key: str, max_len: int) -> str:
    """
    Quoted value of ``key``, truncated to ``max_len`` characters.

    No escape handling: the value ends at the next double quote. Returns ""
    when the key is absent, the value is not quoted or the quote never closes.
    """
    start = _value_start(line, key)
    if start is None or start >= len(line) or line[start] != '"':
        return ""
    end = line.find('"', start + 1)
    if end < 0:
        return ""
    return line[start + 1:end][:max(max_len, 0)]
