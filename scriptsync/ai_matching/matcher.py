"""AI script matcher — semantic script-to-slide matching with a safe fallback.

Pipeline:
  1. Prompt the text model for exactly N script sections (JSON array).
  2. Extract sections from the reply (see ``response_parser``).
  3. Merge / split until the count equals the slide count.
  4. Score confidence; if the call failed, nothing could be extracted, every
     section is empty, or confidence is too low, fall back to the
     proportional allocator.

``match`` always returns exactly one ``ScriptMatch`` per slide summary.
Only ``asyncio.CancelledError`` escapes, so a caller can abandon an
in-flight match; partial results are discarded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx

from scriptsync.ai_matching.base import MatcherConfig, ProviderAdapter
from scriptsync.ai_matching.prompt_builder import build_matching_prompt
from scriptsync.ai_matching.response_parser import (
    ParsedSection,
    adjust_count,
    extract_sections,
)
from scriptsync.ai_matching.selector import get_adapter
from scriptsync.ai_matching.slide_reader import SlideReader
from scriptsync.allocation.allocator import split_script
from scriptsync.allocation.orchestrator import default_granularity
from scriptsync.config import get_matching_config
from scriptsync.log import get_logger
from scriptsync.metrics import AI_FALLBACKS_TOTAL, AI_MATCHES_TOTAL
from scriptsync.models import ScriptMatch, SlideSummary

logger = get_logger(__name__)

FALLBACK_REASONING = "fallback"

# Base confidence by the strategy that produced the sections
_STRATEGY_CONFIDENCE = {
    "direct_json": 95,
    "bracket_scan": 90,
    "numbered_list": 75,
    "quoted_strings": 65,
    "paragraphs": 55,
}
_COUNT_ADJUST_PENALTY = 10

_WORD = re.compile(r"[a-z0-9']+")


@dataclass
class MatchOutcome:
    matches: list[ScriptMatch]
    fallback_used: bool = False
    fallback_reason: Optional[str] = None
    strategy: Optional[str] = None


def find_key_alignments(section: str, slide: SlideSummary, limit: int = 3) -> list[str]:
    """Topic / key-point words (longer than 3 chars) that the section mentions."""
    if not section:
        return []
    section_words = set(_WORD.findall(section.lower()))
    candidates = _WORD.findall(" ".join([slide.topic, *slide.key_points]).lower())
    found: list[str] = []
    for word in candidates:
        if len(word) > 3 and word in section_words and word not in found:
            found.append(word)
        if len(found) >= limit:
            break
    return found


class ScriptMatcher:
    """Matches a full script to slides through a provider adapter."""

    def __init__(
        self,
        config: MatcherConfig | None = None,
        *,
        adapter: ProviderAdapter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if adapter is not None:
            self.adapter = adapter
            self.config = adapter.config
        else:
            self.config = config or MatcherConfig.from_settings()
            self.adapter = get_adapter(self.config, transport=transport)
        self.reader = SlideReader(self.adapter)
        self._max_alignments = get_matching_config().get("max_key_alignments", 3)

    # ---- public ---------------------------------------------------------

    async def match(
        self, slides: Sequence[SlideSummary], full_script: str,
    ) -> list[ScriptMatch]:
        return (await self.match_detailed(slides, full_script)).matches

    async def match_detailed(
        self, slides: Sequence[SlideSummary], full_script: str,
    ) -> MatchOutcome:
        if not slides:
            return MatchOutcome(matches=[])

        try:
            prompt = build_matching_prompt(slides, full_script)
            result = await self.adapter.complete(
                [self.adapter.text_message(prompt)],
                model=self.config.text_model,
            )
            if not result.success:
                return self._fallback(
                    slides, full_script, "provider_error",
                    category=result.error_category.value if result.error_category else None,
                )
            return self._outcome_from_response(slides, full_script, result.text)
        except Exception as exc:
            logger.error("ai_match_exception", error=str(exc), exc_info=True)
            return self._fallback(slides, full_script, "exception")

    def match_from_response(
        self, slides: Sequence[SlideSummary], full_script: str, response_text: str,
    ) -> list[ScriptMatch]:
        """Run extraction and fallback on an already received model reply."""
        if not slides:
            return []
        try:
            return self._outcome_from_response(slides, full_script, response_text).matches
        except Exception as exc:
            logger.error("ai_match_exception", error=str(exc), exc_info=True)
            return self._fallback(slides, full_script, "exception").matches

    async def match_slides(
        self, images: Sequence[bytes], full_script: str,
    ) -> MatchOutcome:
        """Analyze slide images, then match the script to what they show."""
        analyses = await self.reader.analyze_slides(images)
        return await self.match_detailed([a.to_summary() for a in analyses], full_script)

    # ---- internal -------------------------------------------------------

    def _outcome_from_response(
        self, slides: Sequence[SlideSummary], full_script: str, text: str,
    ) -> MatchOutcome:
        expected = len(slides)
        extraction = extract_sections(text)
        if extraction is None:
            logger.warning("ai_response_unparseable", preview=(text or "")[:200])
            return self._fallback(slides, full_script, "unparseable")

        sections = extraction.sections
        adjusted = len(sections) != expected
        if adjusted:
            logger.info(
                "section_count_adjusted",
                strategy=extraction.strategy,
                received=len(sections),
                expected=expected,
            )
            sections = adjust_count(sections, expected)

        if not any(s.text.strip() for s in sections):
            return self._fallback(slides, full_script, "empty")

        base = _STRATEGY_CONFIDENCE.get(extraction.strategy, 50)
        if adjusted:
            base -= _COUNT_ADJUST_PENALTY

        matches = [
            self._to_match(i, section, slides[i], base, extraction.strategy)
            for i, section in enumerate(sections)
        ]
        mean = sum(m.confidence for m in matches) / len(matches)
        if mean < self.config.min_confidence:
            return self._fallback(slides, full_script, "low_confidence")

        AI_MATCHES_TOTAL.labels(strategy=extraction.strategy).inc()
        logger.info(
            "ai_match_complete",
            strategy=extraction.strategy,
            slides=expected,
            mean_confidence=round(mean, 1),
        )
        return MatchOutcome(matches=matches, strategy=extraction.strategy)

    def _to_match(
        self,
        index: int,
        section: ParsedSection,
        slide: SlideSummary,
        base_confidence: int,
        strategy: str,
    ) -> ScriptMatch:
        confidence = section.confidence if section.confidence is not None else base_confidence
        if not section.text.strip():
            confidence = min(confidence, self.config.fallback_confidence)
        return ScriptMatch(
            slide_number=index + 1,
            script_section=section.text,
            confidence=max(0, min(100, confidence)),
            reasoning=section.reasoning or f"AI content matching ({strategy})",
            key_alignment=section.key_alignment
            or find_key_alignments(section.text, slide, self._max_alignments),
        )

    def _fallback(
        self,
        slides: Sequence[SlideSummary],
        full_script: str,
        reason: str,
        *,
        category: str | None = None,
    ) -> MatchOutcome:
        AI_FALLBACKS_TOTAL.labels(reason=reason).inc()
        logger.warning("ai_match_fallback", reason=reason, category=category, slides=len(slides))

        sections = split_script(full_script or "", len(slides), default_granularity())
        matches = [
            ScriptMatch(
                slide_number=i + 1,
                script_section=section,
                confidence=self.config.fallback_confidence,
                reasoning=FALLBACK_REASONING,
                key_alignment=find_key_alignments(section, slides[i], self._max_alignments),
            )
            for i, section in enumerate(sections)
        ]
        return MatchOutcome(matches=matches, fallback_used=True, fallback_reason=reason)
