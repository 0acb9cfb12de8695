"""Reallocation orchestrator — keeps pinned slides fixed and re-splits the rest.

Every operation returns a fresh ``AllocationRound``; the input round is never
mutated.  Callers issuing several edits against one presentation must apply
them in sequence (each call takes the previous call's result).
"""

from __future__ import annotations

from typing import Sequence

from scriptsync.allocation.allocator import split_script
from scriptsync.allocation.tracker import remaining_script
from scriptsync.allocation.validation import (
    validate_script,
    validate_slide_count,
    validate_slide_index,
)
from scriptsync.config import get_allocation_config
from scriptsync.log import get_logger
from scriptsync.metrics import ALLOCATIONS_TOTAL
from scriptsync.models import AllocationRound, Granularity, SlideAllocation

logger = get_logger(__name__)


def default_granularity() -> Granularity:
    return Granularity(get_allocation_config().get("granularity", "sentence"))


def _reallocate(
    full_script: str,
    slides: list[SlideAllocation],
    granularity: Granularity,
) -> list[SlideAllocation]:
    """Fill every non-pinned slot from the script text no pinned slide claims."""
    pinned_texts = [s.content for s in slides if s.is_manually_set]
    free_indices = [s.slide_index for s in slides if not s.is_manually_set]

    # Always normalized through the tracker so a round with no pins matches
    # a from-scratch allocation exactly.
    remaining = remaining_script(full_script, pinned_texts)

    result = [s.model_copy() for s in slides]
    if not free_indices:
        return result

    contents = split_script(remaining, len(free_indices), granularity)
    for slide_index, content in zip(free_indices, contents):
        result[slide_index] = SlideAllocation(
            slide_index=slide_index,
            content=content,
            is_manually_set=False,
        )
    return result


def allocate_script(
    full_script: str,
    slide_count: int,
    existing_allocations: Sequence[SlideAllocation] = (),
    granularity: Granularity | None = None,
) -> AllocationRound:
    """Allocate *full_script* to *slide_count* slides, keeping manual edits.

    Manually set allocations whose index falls outside the new slide range
    are dropped; all others keep their content verbatim.
    """
    validate_script(full_script)
    validate_slide_count(slide_count)
    granularity = granularity or default_granularity()

    pinned = {
        a.slide_index: a
        for a in existing_allocations
        if a.is_manually_set and a.slide_index < slide_count
    }
    slides = [
        pinned[i].model_copy() if i in pinned
        else SlideAllocation(slide_index=i)
        for i in range(slide_count)
    ]

    round_ = AllocationRound(
        full_script=full_script,
        granularity=granularity,
        slides=_reallocate(full_script, slides, granularity),
    )
    ALLOCATIONS_TOTAL.labels(operation="allocate", granularity=granularity.value).inc()
    logger.info(
        "script_allocated",
        slide_count=slide_count,
        pinned=len(pinned),
        granularity=granularity.value,
        script_chars=len(full_script),
    )
    return round_


def update_slide(
    round_: AllocationRound,
    slide_index: int,
    new_content: str,
) -> AllocationRound:
    """Pin *slide_index* to *new_content* and re-split the script over the others."""
    validate_script(round_.full_script)
    validate_slide_index(slide_index, round_.slide_count)

    slides = [s.model_copy() for s in round_.slides]
    slides[slide_index] = SlideAllocation(
        slide_index=slide_index,
        content=new_content,
        is_manually_set=True,
    )

    updated = AllocationRound(
        full_script=round_.full_script,
        granularity=round_.granularity,
        slides=_reallocate(round_.full_script, slides, round_.granularity),
    )
    ALLOCATIONS_TOTAL.labels(operation="update", granularity=round_.granularity.value).inc()
    logger.info(
        "slide_updated",
        slide_index=slide_index,
        pinned=updated.pinned_indices(),
    )
    return updated


def reset_slide(round_: AllocationRound, slide_index: int) -> AllocationRound:
    """Return *slide_index* to automatic allocation and re-split."""
    validate_script(round_.full_script)
    validate_slide_index(slide_index, round_.slide_count)

    slides = [s.model_copy() for s in round_.slides]
    slides[slide_index] = SlideAllocation(
        slide_index=slide_index,
        content=slides[slide_index].content,
        is_manually_set=False,
    )

    updated = AllocationRound(
        full_script=round_.full_script,
        granularity=round_.granularity,
        slides=_reallocate(round_.full_script, slides, round_.granularity),
    )
    ALLOCATIONS_TOTAL.labels(operation="reset", granularity=round_.granularity.value).inc()
    logger.info(
        "slide_reset",
        slide_index=slide_index,
        pinned=updated.pinned_indices(),
    )
    return updated
