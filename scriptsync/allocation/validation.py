"""Input validation for allocation requests."""

from __future__ import annotations

from scriptsync.config import get_limits


class InputError(ValueError):
    """Raised when an allocation request is rejected before any work starts."""


def validate_script(script: str) -> None:
    max_chars = get_limits().get("max_script_chars", 100_000)
    if len(script) > max_chars:
        raise InputError(
            f"Script is too large ({len(script):,} characters, max {max_chars:,}). "
            "Please split into smaller presentations."
        )


def validate_slide_count(slide_count: int) -> None:
    limits = get_limits()
    min_slides = limits.get("min_slide_count", 1)
    max_slides = limits.get("max_slides", 100)
    if slide_count < min_slides:
        raise InputError(f"Must have at least {min_slides} slide, got {slide_count}.")
    if slide_count > max_slides:
        raise InputError(
            f"Too many slides ({slide_count}, max {max_slides}). "
            "Consider breaking into multiple presentations."
        )


def validate_slide_index(slide_index: int, slide_count: int) -> None:
    if not 0 <= slide_index < slide_count:
        raise InputError(
            f"Slide index {slide_index} out of range for {slide_count} slides"
        )
