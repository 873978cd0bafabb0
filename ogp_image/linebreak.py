"""Greedy measured line breaking over segmenter tokens."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from .segmenter import Segmenter
from .text import TextMeasurer

ELLIPSIS = "…"
TRUNCATE_AT_LINES = 5
MAX_LINES = 4


@dataclass(frozen=True)
class Line:
    tokens: tuple[str, ...]

    @property
    def text(self) -> str:
        return "".join(self.tokens)

    def truncated(self, marker: str = ELLIPSIS) -> Line:
        """Drop the final character of the line and append ``marker``."""

        tokens = list(self.tokens)
        while tokens and not tokens[-1]:
            tokens.pop()
        if tokens:
            tokens[-1] = tokens[-1][:-1]
        return Line(tuple(tokens) + (marker,))


def wrap_tokens(tokens: Sequence[str], measurer: TextMeasurer, max_width: int) -> List[Line]:
    """Accumulate tokens into lines no wider than ``max_width`` pixels.

    A token that overflows starts the next line. A token that overflows on
    its own stays alone on its line instead of being split or dropped.
    """

    lines: List[Line] = []
    current: List[str] = []
    for token in tokens:
        candidate = current + [token]
        overflow = measurer.width("".join(candidate)) > max_width
        if overflow and current:
            lines.append(Line(tuple(current)))
            current = [token]
        else:
            current = candidate
    if current or not lines:
        lines.append(Line(tuple(current)))
    return lines


def truncate_lines(lines: Sequence[Line]) -> List[Line]:
    if len(lines) < TRUNCATE_AT_LINES:
        return list(lines)
    kept = list(lines[:MAX_LINES])
    kept[-1] = kept[-1].truncated()
    return kept


def break_lines(
    title: str,
    segmenter: Segmenter,
    measurer: TextMeasurer,
    max_width: int,
) -> List[Line]:
    tokens = segmenter.segment(title)
    return truncate_lines(wrap_tokens(tokens, measurer, max_width))
