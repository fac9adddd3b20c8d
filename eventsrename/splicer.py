"""Rebuild an expression text with some of its spans replaced."""

from typing import Sequence

from eventsrename.expression.nodes import Span


def splice(original_text: str, occurrences: Sequence[Span], replacement_text: str) -> str:
    """Replace each span of ``original_text`` by ``replacement_text``.

    Text outside the spans is copied unchanged. Spans must be sorted by start
    offset, must not overlap and must lie within the text.

    Raises:
        ValueError: If the spans break these requirements
    """
    parts = []
    cursor = 0
    for occurrence in occurrences:
        if occurrence.start < cursor or occurrence.end > len(original_text):
            raise ValueError(
                f"Span [{occurrence.start}, {occurrence.end}) is out of order, "
                f"overlapping or outside a text of length {len(original_text)}"
            )
        parts.append(original_text[cursor:occurrence.start])
        parts.append(replacement_text)
        cursor = occurrence.end
    parts.append(original_text[cursor:])
    return "".join(parts)
