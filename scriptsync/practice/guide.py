"""Practice guidance — presenter notes derived from each slide's script.

Everything here is keyword driven and deterministic; no model calls.
"""

from __future__ import annotations

import math
import re
from typing import Optional, Sequence

from scriptsync.log import get_logger
from scriptsync.models import ContentGuide, ProcessedScript, SlideGuide

logger = get_logger(__name__)

WORDS_PER_MINUTE = 155

IMPORTANCE_KEYWORDS = [
    "important", "key", "crucial", "essential", "critical", "remember",
    "note", "emphasize", "highlight", "focus", "main", "primary",
]

TRANSITION_PHRASES = [
    "moving on", "next", "now let's", "let's move", "turning to",
    "shifting to", "looking at", "considering", "examining",
    "in conclusion", "to summarize", "finally", "lastly",
    "meanwhile", "however", "therefore", "consequently",
    "as we can see", "this brings us to", "which leads to",
]

TIMING_CUES = [
    "pause", "wait", "take a moment", "let that sink in",
    "give them time", "slow down", "speed up", "emphasize",
    "repeat", "click", "advance", "next slide",
]

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PROPER_NOUN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
_NUMBER = re.compile(
    r"\b\d+(?:[.,]\d+)*(?:\s*(?:%|percent|million|billion|thousand|dollars?|fields?|years?))?"
)
_TECHNICAL_TERM = re.compile(
    r"\b(?:framework|system|platform|infrastructure|capability|model|process|methodology)\b",
    re.IGNORECASE,
)

# Longest first so "next slide" wins over "next".
_HIGHLIGHT = re.compile(
    r"\b(?:"
    + "|".join(
        re.escape(p)
        for p in sorted(set(IMPORTANCE_KEYWORDS + TRANSITION_PHRASES), key=len, reverse=True)
    )
    + r")\b",
    re.IGNORECASE,
)


def _capitalize(sentence: str) -> str:
    return sentence[:1].upper() + sentence[1:]


def _sentences(script: str, min_length: int = 0) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(script) if len(s.strip()) > min_length]


def _has_keyword(sentence: str) -> bool:
    lower = sentence.lower()
    return any(k in lower for k in IMPORTANCE_KEYWORDS)


def _sentences_containing(script: str, phrases: Sequence[str]) -> list[str]:
    found: list[str] = []
    sentences = _sentences(script)
    for phrase in phrases:
        for sentence in sentences:
            if phrase in sentence.lower():
                cleaned = _capitalize(sentence)
                if cleaned not in found:
                    found.append(cleaned)
    return found


# ---------------------------------------------------------------------------
# Script processing
# ---------------------------------------------------------------------------

def extract_key_points(script: str) -> list[str]:
    """Sentences with an importance keyword, else the first three sentences."""
    if not script.strip():
        return []
    sentences = _sentences(script, min_length=10)
    key_points = [_capitalize(s) for s in sentences if _has_keyword(s)]
    return key_points or sentences[:3]


def extract_transition_phrases(script: str) -> list[str]:
    if not script.strip():
        return []
    return _sentences_containing(script, TRANSITION_PHRASES)


def extract_timing_cues(script: str) -> list[str]:
    if not script.strip():
        return []
    return _sentences_containing(script, TIMING_CUES)


def highlight_script(script: str) -> str:
    """Bold importance keywords and transition phrases in markdown."""
    if not script.strip():
        return script
    return _HIGHLIGHT.sub(lambda m: f"**{m.group(0)}**", script)


def estimate_speaking_time(word_count: int) -> str:
    if word_count <= 0:
        return "0 minutes"
    minutes = math.ceil(word_count / WORDS_PER_MINUTE)
    return "1 minute" if minutes == 1 else f"{minutes} minutes"


def process_script(script: str) -> ProcessedScript:
    word_count = len(script.split())
    return ProcessedScript(
        key_points=extract_key_points(script),
        transition_phrases=extract_transition_phrases(script),
        timing_cues=extract_timing_cues(script),
        highlighted_script=highlight_script(script),
        word_count=word_count,
        speaking_time=estimate_speaking_time(word_count),
    )


# ---------------------------------------------------------------------------
# Content guides
# ---------------------------------------------------------------------------

def extract_key_concepts(script: str) -> list[str]:
    """Up to five terms worth stressing: names, figures, technical nouns."""
    if not script.strip():
        return []
    concepts = (
        _PROPER_NOUN.findall(script)[:3]
        + [n.strip() for n in _NUMBER.findall(script)][:2]
        + _TECHNICAL_TERM.findall(script)[:2]
    )
    return list(dict.fromkeys(concepts))[:5]


def _bold_concepts(sentence: str) -> str:
    concepts = extract_key_concepts(sentence)
    if not concepts:
        return _capitalize(sentence)
    pattern = re.compile(
        r"\b(?:" + "|".join(re.escape(c) for c in sorted(concepts, key=len, reverse=True)) + r")\b",
        re.IGNORECASE,
    )
    return _capitalize(pattern.sub(lambda m: f"**{m.group(0)}**", sentence))


def extract_key_messages(script: str) -> list[str]:
    """Two or three sentences to land, with key concepts bolded."""
    if not script.strip():
        return []
    sentences = _sentences(script, min_length=15)

    chosen = [s for s in sentences if _has_keyword(s)][:2]
    if not chosen:
        chosen = sentences[:2]
    if len(chosen) == 1 and len(sentences) > 1:
        extra = next((s for s in sentences if s not in chosen), None)
        if extra:
            chosen.append(extra)

    return [_bold_concepts(s) for s in chosen[:3]]


def _opens_with_cue(script: str, *cues: str) -> bool:
    first = _sentences(script)[:1]
    return bool(first) and any(c in first[0].lower() for c in cues)


def transition_to(current: str, next_script: str) -> Optional[str]:
    if not current.strip() or not next_script.strip():
        return None
    concepts = extract_key_concepts(next_script)
    if concepts:
        return f"This leads us to examine {concepts[0].lower()}..."
    first = _sentences(next_script)[:1]
    if not first or len(first[0]) <= 10:
        return "Moving forward..."
    if _opens_with_cue(next_script, "now", "next"):
        return "Moving on to our next topic..."
    if _opens_with_cue(next_script, "let"):
        return "Let's shift our focus..."
    return "This brings us to the next point..."


def transition_from(previous: str, current: str) -> Optional[str]:
    if not previous.strip() or not current.strip():
        return None
    concepts = extract_key_concepts(previous)
    if concepts:
        return f"Building on {concepts[0].lower()} we just discussed..."
    first = _sentences(current)[:1]
    if not first or len(first[0]) <= 10:
        return "Building on what we just covered..."
    if _opens_with_cue(current, "now", "next"):
        return "Continuing from where we left off..."
    return "Following up on that point..."


def content_guide(
    script: str,
    previous: Optional[str] = None,
    next_script: Optional[str] = None,
) -> ContentGuide:
    if not script.strip():
        return ContentGuide()
    return ContentGuide(
        transition_from=transition_from(previous, script) if previous else None,
        key_messages=extract_key_messages(script),
        key_concepts=extract_key_concepts(script),
        transition_to=transition_to(script, next_script) if next_script else None,
    )


def content_guides(scripts: Sequence[str]) -> list[SlideGuide]:
    """Guides for a whole round, each slide bridged to its neighbours."""
    guides = []
    for i, script in enumerate(scripts):
        previous = scripts[i - 1] if i > 0 else None
        following = scripts[i + 1] if i < len(scripts) - 1 else None
        guides.append(
            SlideGuide(
                slide_index=i,
                processed=process_script(script),
                guide=content_guide(script, previous, following),
            )
        )
    logger.info("content_guides_built", slides=len(guides))
    return guides
