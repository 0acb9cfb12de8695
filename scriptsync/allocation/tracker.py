"""Pinned-region tracker — finds manually allocated text inside the original script.

Pinned text is located by exact substring search and recorded as
non-overlapping half-open spans.  Removing those spans (back to front, so
earlier offsets stay valid) yields the text still available for automatic
allocation.  Text that cannot be found verbatim is skipped: the user may have
rewritten it, and only text the system itself allocated is ever removed.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from scriptsync.allocation.extractor import extract_sentences
from scriptsync.log import get_logger
from scriptsync.metrics import PIN_LOCATION_MISSES
from scriptsync.models import PinnedSpan

logger = get_logger(__name__)

_TRAILING_BLANKS = re.compile(r"[ \t]+\n")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def _sub_parts(pinned_texts: Iterable[str]) -> list[str]:
    """Break pinned texts into trimmed sentences, line by line.

    Sentence mode joins units with a single space, so a slide's content may
    span several source lines; each sentence is still a verbatim substring.
    """
    parts: list[str] = []
    for text in pinned_texts:
        for line in text.split("\n"):
            parts.extend(extract_sentences(line))
    return parts


def _find_free_occurrence(
    full_script: str, part: str, accepted: Sequence[PinnedSpan],
) -> PinnedSpan | None:
    """First occurrence of *part* that does not overlap an accepted span."""
    start = full_script.find(part)
    while start != -1:
        candidate = PinnedSpan(start=start, end=start + len(part))
        if not any(candidate.overlaps(span) for span in accepted):
            return candidate
        start = full_script.find(part, start + 1)
    return None


def locate(full_script: str, pinned_texts: Sequence[str]) -> list[PinnedSpan]:
    """Return non-overlapping spans of *full_script* covered by *pinned_texts*."""
    accepted: list[PinnedSpan] = []
    misses = 0

    for part in _sub_parts(pinned_texts):
        span = _find_free_occurrence(full_script, part, accepted)
        if span is None:
            misses += 1
            continue
        accepted.append(span)

    if misses:
        PIN_LOCATION_MISSES.inc(misses)
        logger.debug("pinned_parts_not_located", misses=misses, located=len(accepted))
    return accepted


def remove_spans(full_script: str, spans: Sequence[PinnedSpan]) -> str:
    """Splice *spans* out of *full_script* and normalize the leftover whitespace."""
    remaining = full_script
    for span in sorted(spans, key=lambda s: s.start, reverse=True):
        remaining = remaining[:span.start] + remaining[span.end:]

    remaining = _TRAILING_BLANKS.sub("\n", remaining)
    remaining = _EXCESS_NEWLINES.sub("\n\n", remaining)
    return remaining.strip()


def remaining_script(full_script: str, pinned_texts: Sequence[str]) -> str:
    """Text of *full_script* not claimed by any pinned slide."""
    return remove_spans(full_script, locate(full_script, pinned_texts))
