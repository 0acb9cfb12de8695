"""Prompt construction for script matching and slide analysis."""

from __future__ import annotations

from typing import Sequence

from scriptsync.models import SlideSummary

SLIDE_ANALYSIS_PROMPT = """Analyze this presentation slide and return ONLY a JSON object with this exact structure:
{
  "allText": "Every word visible on the slide, including titles, bullets, labels, numbers",
  "mainTopic": "The primary subject of the slide in 3-8 words",
  "keyPoints": ["point 1", "point 2", "point 3"],
  "visualElements": ["chart", "diagram", "image"],
  "suggestedTalkingPoints": ["talking point 1", "talking point 2"],
  "emotionalTone": "professional/inspiring/urgent/analytical",
  "complexity": "simple/moderate/complex",
  "recommendedDuration": 60
}
Return ONLY the JSON, no other text."""


def _describe_slide(index: int, summary: SlideSummary) -> str:
    line = f"{index + 1}. {summary.topic or 'Untitled slide'}"
    if summary.key_points:
        line += f" - Key points: {', '.join(summary.key_points)}"
    return line


def build_matching_prompt(slides: Sequence[SlideSummary], full_script: str) -> str:
    """Ask for exactly ``len(slides)`` script sections as a bare JSON array."""
    count = len(slides)
    slide_lines = "\n".join(_describe_slide(i, s) for i, s in enumerate(slides))
    return f"""You are an expert presentation coach. Divide this script into exactly {count} sections that align with the slides below, in order.

SLIDES:
{slide_lines}

SCRIPT TO DIVIDE:
{full_script}

Use the script's own words. Do not summarize, rewrite, or drop any part of it.

CRITICAL: Respond with ONLY a JSON array of exactly {count} strings. No text before the [ and none after the ].
Format: ["script for slide 1", "script for slide 2", ...]"""


def build_analysis_prompt() -> str:
    return SLIDE_ANALYSIS_PROMPT
