"""Pydantic models — allocation rounds, AI matches and API contracts."""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Granularity(str, enum.Enum):
    SECTION = "section"
    SENTENCE = "sentence"


class Provider(str, enum.Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------

class ScriptUnit(BaseModel):
    """One extracted sentence or section."""

    model_config = ConfigDict(frozen=True)

    text: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def word_count(self) -> int:
        return len(self.text.split())


class PinnedSpan(BaseModel):
    """Half-open [start, end) character range into the original script."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "PinnedSpan":
        if self.end < self.start:
            raise ValueError(f"span end {self.end} before start {self.start}")
        return self

    def overlaps(self, other: "PinnedSpan") -> bool:
        return self.start < other.end and self.end > other.start


class SlideAllocation(BaseModel):
    slide_index: int = Field(ge=0)
    content: str = ""
    is_manually_set: bool = False


class AllocationRound(BaseModel):
    """Every slide's script for one presentation at one point in time."""

    full_script: str
    granularity: Granularity = Granularity.SENTENCE
    slides: list[SlideAllocation] = Field(default_factory=list)

    @model_validator(mode="after")
    def _one_per_index(self) -> "AllocationRound":
        indices = [s.slide_index for s in self.slides]
        if indices != list(range(len(self.slides))):
            raise ValueError(
                "slides must hold exactly one allocation per index, in order: "
                f"got {indices}"
            )
        return self

    @property
    def slide_count(self) -> int:
        return len(self.slides)

    def pinned_indices(self) -> list[int]:
        return [s.slide_index for s in self.slides if s.is_manually_set]

    def contents(self) -> list[str]:
        return [s.content for s in self.slides]


# ---------------------------------------------------------------------------
# AI matching
# ---------------------------------------------------------------------------

class SlideSummary(BaseModel):
    topic: str = ""
    key_points: list[str] = Field(default_factory=list)


class SlideAnalysis(BaseModel):
    """What the vision model read off one slide image."""

    all_text: str = ""
    main_topic: str = ""
    key_points: list[str] = Field(default_factory=list)
    visual_elements: list[str] = Field(default_factory=list)
    suggested_talking_points: list[str] = Field(default_factory=list)
    emotional_tone: str = "professional"
    complexity: str = "moderate"
    recommended_duration: int = 60
    analyzed: bool = True

    def to_summary(self) -> SlideSummary:
        return SlideSummary(topic=self.main_topic, key_points=self.key_points)

    @classmethod
    def placeholder(cls, slide_number: int) -> "SlideAnalysis":
        return cls(
            all_text=f"Slide {slide_number}",
            main_topic=f"Slide {slide_number}",
            analyzed=False,
        )


class ScriptMatch(BaseModel):
    slide_number: int = Field(ge=1)
    script_section: str = ""
    confidence: int = Field(ge=0, le=100)
    reasoning: str = ""
    key_alignment: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Practice guidance
# ---------------------------------------------------------------------------

class ProcessedScript(BaseModel):
    key_points: list[str] = Field(default_factory=list)
    transition_phrases: list[str] = Field(default_factory=list)
    timing_cues: list[str] = Field(default_factory=list)
    highlighted_script: str = ""
    word_count: int = 0
    speaking_time: str = "0 minutes"


class ContentGuide(BaseModel):
    transition_from: Optional[str] = None
    key_messages: list[str] = Field(default_factory=list)
    key_concepts: list[str] = Field(default_factory=list)
    transition_to: Optional[str] = None


class SlideGuide(BaseModel):
    slide_index: int
    processed: ProcessedScript
    guide: ContentGuide


# ---------------------------------------------------------------------------
# API request / response models
# ---------------------------------------------------------------------------

class AllocateRequest(BaseModel):
    presentation_id: Optional[str] = None
    script: str
    slide_count: int
    existing_allocations: list[SlideAllocation] = Field(default_factory=list)
    granularity: Optional[Granularity] = None


class UpdateSlideRequest(BaseModel):
    allocation_round: AllocationRound
    slide_index: int
    content: str


class ResetSlideRequest(BaseModel):
    allocation_round: AllocationRound
    slide_index: int


class MatchRequest(BaseModel):
    presentation_id: Optional[str] = None
    slides: list[SlideSummary]
    script: str


class MatchResponse(BaseModel):
    matches: list[ScriptMatch] = Field(default_factory=list)
    fallback_used: bool = False


class GuideRequest(BaseModel):
    scripts: list[str]


class GuideResponse(BaseModel):
    guides: list[SlideGuide] = Field(default_factory=list)
