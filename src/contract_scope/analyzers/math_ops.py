"""Weighted counting of complex math operations.

Pattern families from ``rules.MATH_FAMILIES`` run in order over the source
with comments and string literals blanked out. A match whose character span
overlaps a span already claimed by an earlier match is ignored, so a token
hit by two families counts once. Matches on a function declaration line are
skipped so parameter and type names are not mistaken for operations.
"""

import bisect
import math
import re
from typing import List, Optional, Tuple

from ..logging_config import get_logger
from .rules import MATH_FAMILIES

logger = get_logger(__name__)

_LINE_COMMENT = re.compile(r"//.*$", re.MULTILINE)
_BLOCK_COMMENT = re.compile(r"/\*[\s\S]*?\*/")
_DOUBLE_QUOTED = re.compile(r'"[^"\\]*(?:\\.[^"\\]*)*"')
_SINGLE_QUOTED = re.compile(r"'[^'\\]*(?:\\.[^'\\]*)*'")
_RAW_STRING = re.compile(r'r#*"[^"]*"#*')

DEFAULT_WARNING_THRESHOLD = 500.0


def remove_comments_and_strings(text: str) -> str:
    """Blank out comments and collapse string literals to empty quotes."""
    cleaned = _LINE_COMMENT.sub("", text)
    cleaned = _BLOCK_COMMENT.sub("", cleaned)
    cleaned = _DOUBLE_QUOTED.sub('""', cleaned)
    cleaned = _SINGLE_QUOTED.sub("''", cleaned)
    cleaned = _RAW_STRING.sub('""', cleaned)
    return cleaned


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward (0.5 -> 1, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


class _SpanSet:
    """Disjoint claimed character spans, kept sorted by start."""

    def __init__(self) -> None:
        self._starts: List[int] = []
        self._ends: List[int] = []

    def claim(self, start: int, end: int) -> bool:
        """Claim ``[start, end)`` unless it overlaps an existing span."""
        i = bisect.bisect_left(self._starts, start)
        if i > 0 and self._ends[i - 1] > start:
            return False
        if i < len(self._starts) and self._starts[i] < end:
            return False
        self._starts.insert(i, start)
        self._ends.insert(i, end)
        return True


def _line_around(text: str, start: int, end: int) -> str:
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    return text[line_start:] if line_end == -1 else text[line_start:line_end]


def weighted_math_operations(text: str) -> Tuple[float, List[Tuple[str, str]]]:
    """Raw weighted count plus the (rule id, matched text) pairs that scored.

    ``text`` is scanned as given; callers normally pass the output of
    ``remove_comments_and_strings``.
    """
    claimed = _SpanSet()
    total = 0.0
    hits: List[Tuple[str, str]] = []

    for _family_name, rules in MATH_FAMILIES:
        for rule in rules:
            for match in rule.finditer(text):
                start, end = match.span()
                if start == end:
                    continue
                token = match.group(0)
                line = _line_around(text, start, end)
                if "fn " in line and token in line:
                    continue
                if claimed.claim(start, end):
                    total += rule.weight
                    hits.append((rule.rule_id, token))

    return total, hits


def count_complex_math_operations(
    text: str, warning_threshold: Optional[float] = None, path: str = ""
) -> int:
    """Weighted, deduplicated count of math operations in one file, rounded.

    Logs a warning (never raises) when the raw weighted count exceeds
    ``warning_threshold``, which usually means a pattern is over-triggering.
    """
    threshold = DEFAULT_WARNING_THRESHOLD if warning_threshold is None else warning_threshold
    raw, _hits = weighted_math_operations(remove_comments_and_strings(text))

    if raw > threshold:
        logger.warning(
            f"Math operations count ({raw:.1f}) in {path or '<source>'} exceeds "
            f"{threshold:g}, patterns are likely over-triggering"
        )

    return round_half_up(raw)
