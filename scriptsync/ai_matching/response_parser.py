"""Defensive extraction of script sections from free-form model output.

Models asked for "only a JSON array" still wrap it in prose, code fences,
numbered lists or plain paragraphs.  Strategies are tried in order and the
first one yielding a non-empty result wins:

1. direct_json     — ``json.loads`` of the whole trimmed response.
2. bracket_scan    — text between the first ``[``/``{`` and the last
                     matching closer, trimming the tail on corruption.
3. numbered_list   — ``1. text`` / ``2) text`` lines plus continuations.
4. quoted_strings  — long quoted runs that read like sentences.
5. paragraphs      — substantial blank-line separated paragraphs.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

from scriptsync.log import get_logger

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)
_NUMBERED_LINE = re.compile(r"^\s*\d+[.)]\s+(.+)")
_NUMBER_PREFIX = re.compile(r"^\s*\d+[.)]")
_CAPS_HEADER = re.compile(r"^[A-Z][A-Z\s]+:")
_BOLD_HEADER = re.compile(r"^\*\*[^*]+\*\*:?$")
_QUOTED = re.compile(r'"([^"]{21,})"')
_PARAGRAPH_SPLIT = re.compile(r"\n\n+|\n---+\n|\n\*\*\*")
_SENTENCE_PIECE = re.compile(r"[^.!?]+(?:[.!?]+|$)")

_TEXT_KEYS = ("scriptSection", "script_section", "script", "text", "content", "section")
_LIST_KEYS = ("sections", "matches", "scripts", "slides", "results")

# How many earlier closing brackets to try when the tail is corrupt.
_MAX_TAIL_TRIMS = 20

MIN_NUMBERED_LENGTH = 20
MIN_PARAGRAPH_LENGTH = 50


@dataclass
class ParsedSection:
    text: str
    confidence: Optional[int] = None
    reasoning: Optional[str] = None
    key_alignment: list[str] = field(default_factory=list)


@dataclass
class ExtractionResult:
    sections: list[ParsedSection]
    strategy: str

    @property
    def texts(self) -> list[str]:
        return [s.text for s in self.sections]


# ---------------------------------------------------------------------------
# JSON coercion
# ---------------------------------------------------------------------------

def _clamp_confidence(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    # json.loads accepts NaN and Infinity
    if not math.isfinite(value):
        return None
    if 0 < value <= 1 and isinstance(value, float):
        value *= 100
    return max(0, min(100, int(round(value))))


def _section_from_dict(item: dict[str, Any]) -> Optional[ParsedSection]:
    text = next((item[k] for k in _TEXT_KEYS if isinstance(item.get(k), str)), None)
    if text is None:
        return None
    alignment = item.get("keyAlignment") or item.get("key_alignment") or []
    reasoning = item.get("reasoning")
    return ParsedSection(
        text=text.strip(),
        confidence=_clamp_confidence(item.get("confidence")),
        reasoning=reasoning if isinstance(reasoning, str) else None,
        key_alignment=[a for a in alignment if isinstance(a, str)] if isinstance(alignment, list) else [],
    )


def _coerce_sections(value: Any) -> Optional[list[ParsedSection]]:
    """Turn a parsed JSON value into sections, or None if it holds none."""
    if isinstance(value, dict):
        for key in _LIST_KEYS:
            if isinstance(value.get(key), list):
                return _coerce_sections(value[key])
        for inner in value.values():
            if isinstance(inner, list):
                return _coerce_sections(inner)
        single = _section_from_dict(value)
        return [single] if single else None

    if not isinstance(value, list) or not value:
        return None

    sections: list[ParsedSection] = []
    for item in value:
        if isinstance(item, str):
            sections.append(ParsedSection(text=item.strip()))
        elif isinstance(item, dict):
            section = _section_from_dict(item)
            if section is None:
                return None
            sections.append(section)
        else:
            return None
    return sections


def _loads(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except (ValueError, RecursionError):
        return None


def _scan_brackets(text: str, opener: str, closer: str) -> Any:
    """Parse the span from the first *opener* to the last *closer*.

    On a parse failure, retries with progressively earlier closers, since
    truncated or chatty output usually breaks near the end.
    """
    start = text.find(opener)
    if start == -1:
        return None
    end = text.rfind(closer)
    attempts = 0
    while end > start and attempts < _MAX_TAIL_TRIMS:
        parsed = _loads(text[start:end + 1])
        if parsed is not None:
            return parsed
        end = text.rfind(closer, start, end)
        attempts += 1
    return None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _direct_json(text: str) -> Optional[list[ParsedSection]]:
    return _coerce_sections(_loads(text.strip()))


def _bracket_scan(text: str) -> Optional[list[ParsedSection]]:
    cleaned = _CODE_FENCE.sub("", text)
    pairs = [("[", "]"), ("{", "}")]
    # Whichever bracket opens first is the outermost structure.
    pairs.sort(key=lambda p: cleaned.find(p[0]) if p[0] in cleaned else len(cleaned))
    for opener, closer in pairs:
        sections = _coerce_sections(_scan_brackets(cleaned, opener, closer))
        if sections:
            return sections
    return None


def _numbered_list(text: str) -> Optional[list[ParsedSection]]:
    sections: list[str] = []
    current = ""
    in_list = False

    for line in text.split("\n"):
        match = _NUMBERED_LINE.match(line)
        if match:
            if current.strip():
                sections.append(current.strip())
            current = match.group(1)
            in_list = True
        elif in_list and line.strip():
            if (
                "Note:" in line
                or "```" in line
                or _CAPS_HEADER.match(line)
                or _BOLD_HEADER.match(line.strip())
            ):
                in_list = False
                if current.strip():
                    sections.append(current.strip())
                current = ""
            elif not _NUMBER_PREFIX.match(line):
                current += " " + line.strip()

    if current.strip():
        sections.append(current.strip())

    kept = [s for s in sections if len(s) > MIN_NUMBERED_LENGTH]
    return [ParsedSection(text=s) for s in kept] or None


def _quoted_strings(text: str) -> Optional[list[ParsedSection]]:
    kept = [
        m.group(1).strip()
        for m in _QUOTED.finditer(text)
        if len(m.group(1).split()) > 5 and re.search(r"[.!?]", m.group(1))
    ]
    return [ParsedSection(text=s) for s in kept] or None


def _paragraphs(text: str) -> Optional[list[ParsedSection]]:
    kept = []
    for para in _PARAGRAPH_SPLIT.split(text):
        cleaned = para.strip()
        if (
            len(cleaned) > MIN_PARAGRAPH_LENGTH
            and not cleaned.startswith("Note:")
            and not cleaned.upper().startswith("SLIDE")
            and "```" not in cleaned
            and len(cleaned.split()) > 10
        ):
            kept.append(cleaned)
    return [ParsedSection(text=s) for s in kept] or None


STRATEGIES: list[tuple[str, Callable[[str], Optional[list[ParsedSection]]]]] = [
    ("direct_json", _direct_json),
    ("bracket_scan", _bracket_scan),
    ("numbered_list", _numbered_list),
    ("quoted_strings", _quoted_strings),
    ("paragraphs", _paragraphs),
]


def extract_sections(text: str | None) -> Optional[ExtractionResult]:
    """Run every strategy in order; None when all of them come up empty."""
    if not text or not text.strip():
        return None
    for name, strategy in STRATEGIES:
        sections = strategy(text)
        if sections:
            logger.debug("sections_extracted", strategy=name, count=len(sections))
            return ExtractionResult(sections=sections, strategy=name)
    return None


def extract_json_object(text: str | None) -> Optional[dict[str, Any]]:
    """Find the first JSON object in *text* (direct parse, then bracket scan)."""
    if not text or not text.strip():
        return None
    parsed = _loads(text.strip())
    if isinstance(parsed, dict):
        return parsed
    parsed = _scan_brackets(_CODE_FENCE.sub("", text), "{", "}")
    return parsed if isinstance(parsed, dict) else None


# ---------------------------------------------------------------------------
# Count adjustment
# ---------------------------------------------------------------------------

def _merge(a: ParsedSection, b: ParsedSection) -> ParsedSection:
    confidences = [c for c in (a.confidence, b.confidence) if c is not None]
    return ParsedSection(
        text=" ".join(t for t in (a.text, b.text) if t),
        confidence=min(confidences) if confidences else None,
        reasoning=a.reasoning or b.reasoning,
        key_alignment=list(dict.fromkeys(a.key_alignment + b.key_alignment)),
    )


def _split_text(text: str) -> Optional[tuple[str, str]]:
    """Halve *text* at a sentence boundary, else a word boundary."""
    pieces = [p for p in _SENTENCE_PIECE.findall(text) if p.strip()]
    if len(pieces) >= 2:
        mid = len(pieces) // 2
        return "".join(pieces[:mid]).strip(), "".join(pieces[mid:]).strip()
    words = text.split()
    if len(words) >= 2:
        mid = len(words) // 2
        return " ".join(words[:mid]), " ".join(words[mid:])
    return None


def adjust_count(sections: list[ParsedSection], expected: int) -> list[ParsedSection]:
    """Merge or split sections until exactly *expected* remain."""
    if expected <= 0:
        return []
    result = list(sections)

    while len(result) > expected:
        if expected == 1:
            merged = result[0]
            for s in result[1:]:
                merged = _merge(merged, s)
            result = [merged]
            break
        pair = min(
            range(len(result) - 1),
            key=lambda i: len(result[i].text) + len(result[i + 1].text),
        )
        result[pair:pair + 2] = [_merge(result[pair], result[pair + 1])]

    while len(result) < expected:
        if not result:
            result.append(ParsedSection(text=""))
            continue
        longest = max(range(len(result)), key=lambda i: len(result[i].text))
        halves = _split_text(result[longest].text)
        if halves is None:
            result.append(replace(result[-1], text="", key_alignment=[]))
            continue
        first, second = halves
        result[longest:longest + 1] = [
            replace(result[longest], text=first),
            replace(result[longest], text=second),
        ]

    return result
