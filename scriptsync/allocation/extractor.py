"""Sentence / section extraction — splits a raw script into ordered units.

Two granularities:
1. Sections: structural markers (headers, rules, numbered items, ``Slide N``
   lines) open a new section; scripts without any marker fall back to
   blank-line paragraphs.
2. Sentences: paragraph breaks, then ``.``/``!``/``?`` followed by whitespace.
"""

from __future__ import annotations

import re

from scriptsync.log import get_logger
from scriptsync.models import Granularity, ScriptUnit

logger = get_logger(__name__)

# Lines that open a new section (matched against the stripped line)
_SECTION_MARKERS = [
    re.compile(r"^#{1,3}\s+"),                    # markdown headers
    re.compile(r"^[A-Z][A-Z\s]+:?$"),             # ALL CAPS headers
    re.compile(r"^---+$"),                        # horizontal rules
    re.compile(r"^\[.+\]$"),                      # [Bracketed] headers
    re.compile(r"^\d+\.\s+"),                     # 1. Numbered sections
    re.compile(r"^slide\s+\d+\b", re.IGNORECASE),  # Slide 3 / SLIDE 3:
]

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_MULTI_NEWLINE = re.compile(r"\n{2,}")
_SENTENCE_END = re.compile(r"([.!?])\s+")

# Splitting on a sentinel avoids variable-width lookbehinds.
_BOUNDARY = "\x00"


def is_section_marker(line: str) -> bool:
    stripped = line.strip()
    if not stripped:
        return False
    return any(p.search(stripped) for p in _SECTION_MARKERS)


def extract_sections(script: str) -> list[str]:
    """Split *script* into structural sections, in source order."""
    if not script or not script.strip():
        return []

    sections: list[str] = []
    current: list[str] = []
    markers_found = 0

    for line in script.split("\n"):
        if is_section_marker(line):
            markers_found += 1
            if "\n".join(current).strip():
                sections.append("\n".join(current).strip())
            current = [line]
        else:
            current.append(line)

    if "\n".join(current).strip():
        sections.append("\n".join(current).strip())

    if markers_found == 0:
        paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(script) if p.strip()]
        logger.debug("sections_paragraph_fallback", paragraphs=len(paragraphs))
        return paragraphs

    return sections


def extract_sentences(script: str) -> list[str]:
    """Split *script* into sentences, treating paragraph breaks as boundaries."""
    if not script or not script.strip():
        return []

    marked = _MULTI_NEWLINE.sub(_BOUNDARY, script)
    marked = _SENTENCE_END.sub(lambda m: m.group(1) + _BOUNDARY, marked)
    return [s.strip() for s in marked.split(_BOUNDARY) if s.strip()]


def extract(script: str, granularity: Granularity = Granularity.SECTION) -> list[str]:
    if granularity == Granularity.SENTENCE:
        return extract_sentences(script)
    return extract_sections(script)


def extract_units(
    script: str,
    granularity: Granularity = Granularity.SECTION,
) -> list[ScriptUnit]:
    return [ScriptUnit(text=t) for t in extract(script, granularity)]
