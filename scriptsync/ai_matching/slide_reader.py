"""Slide reader — vision analysis of rendered slide images.

Slides are analyzed in batches of ``max_concurrent`` with a fixed pause
between batches to stay under provider rate limits.  A slide whose analysis
fails for any reason gets a placeholder analysis (``analyzed=False``) so the
caller always receives one entry per input image.
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

from scriptsync.ai_matching.base import ProviderAdapter
from scriptsync.ai_matching.image_prep import ImagePrepError, prepare_slide_image
from scriptsync.ai_matching.prompt_builder import build_analysis_prompt
from scriptsync.ai_matching.response_parser import extract_json_object
from scriptsync.log import get_logger
from scriptsync.metrics import SLIDE_ANALYSES_TOTAL
from scriptsync.models import SlideAnalysis

logger = get_logger(__name__)

_ANALYSIS_MAX_TOKENS = 1200


def _str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def analysis_from_json(data: dict[str, Any], slide_number: int) -> SlideAnalysis:
    """Map the model's camelCase JSON onto a ``SlideAnalysis``."""
    topic = str(data.get("mainTopic") or data.get("title") or "").strip()
    return SlideAnalysis(
        all_text=str(data.get("allText") or "").strip(),
        main_topic=topic or f"Slide {slide_number}",
        key_points=_str_list(data.get("keyPoints")),
        visual_elements=_str_list(data.get("visualElements")),
        suggested_talking_points=_str_list(data.get("suggestedTalkingPoints")),
        emotional_tone=str(data.get("emotionalTone") or "professional"),
        complexity=str(data.get("complexity") or "moderate"),
        recommended_duration=_as_int(data.get("recommendedDuration"), 60),
        analyzed=True,
    )


class SlideReader:
    """Runs vision analysis through a provider adapter."""

    def __init__(self, adapter: ProviderAdapter):
        self.adapter = adapter
        self.config = adapter.config

    async def analyze_slide(self, image: bytes, slide_number: int) -> SlideAnalysis:
        try:
            image_b64 = prepare_slide_image(image)
        except ImagePrepError as exc:
            logger.warning("slide_image_unreadable", slide_number=slide_number, error=str(exc))
            SLIDE_ANALYSES_TOTAL.labels(result="placeholder").inc()
            return SlideAnalysis.placeholder(slide_number)

        message = self.adapter.vision_message(build_analysis_prompt(), image_b64, "image/jpeg")
        result = await self.adapter.complete(
            [message],
            model=self.config.vision_model,
            max_tokens=_ANALYSIS_MAX_TOKENS,
            kind="vision",
        )
        if not result.success:
            SLIDE_ANALYSES_TOTAL.labels(result="placeholder").inc()
            return SlideAnalysis.placeholder(slide_number)

        data = extract_json_object(result.text)
        if data is None:
            logger.warning(
                "slide_analysis_unparseable",
                slide_number=slide_number,
                preview=result.text[:200],
            )
            SLIDE_ANALYSES_TOTAL.labels(result="placeholder").inc()
            return SlideAnalysis.placeholder(slide_number)

        SLIDE_ANALYSES_TOTAL.labels(result="success").inc()
        logger.info("slide_analyzed", slide_number=slide_number)
        return analysis_from_json(data, slide_number)

    async def analyze_slides(self, images: Sequence[bytes]) -> list[SlideAnalysis]:
        """Analyze every image, ``max_concurrent`` at a time, in input order."""
        batch_size = self.config.max_concurrent
        analyses: list[SlideAnalysis] = []

        for start in range(0, len(images), batch_size):
            if start > 0 and self.config.batch_delay_seconds > 0:
                await asyncio.sleep(self.config.batch_delay_seconds)

            batch = images[start:start + batch_size]
            results = await asyncio.gather(
                *(self.analyze_slide(img, start + i + 1) for i, img in enumerate(batch)),
                return_exceptions=True,
            )
            for i, r in enumerate(results):
                slide_number = start + i + 1
                if isinstance(r, BaseException) and not isinstance(r, Exception):
                    raise r
                if isinstance(r, Exception):
                    logger.error("slide_analysis_exception", slide_number=slide_number, error=str(r))
                    SLIDE_ANALYSES_TOTAL.labels(result="placeholder").inc()
                    analyses.append(SlideAnalysis.placeholder(slide_number))
                else:
                    analyses.append(r)

        logger.info(
            "slides_analyzed",
            total=len(analyses),
            placeholders=sum(1 for a in analyses if not a.analyzed),
        )
        return analyses
