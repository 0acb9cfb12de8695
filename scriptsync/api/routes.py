"""FastAPI routes for the ScriptSync API."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from scriptsync.ai_matching.base import MatcherConfig
from scriptsync.ai_matching.matcher import ScriptMatcher
from scriptsync.allocation.orchestrator import allocate_script, reset_slide, update_slide
from scriptsync.allocation.validation import InputError, validate_script, validate_slide_count
from scriptsync.log import bind_presentation_context, clear_context, get_logger
from scriptsync.models import (
    AllocateRequest,
    AllocationRound,
    GuideRequest,
    GuideResponse,
    MatchRequest,
    MatchResponse,
    ResetSlideRequest,
    UpdateSlideRequest,
)
from scriptsync.practice.guide import content_guides

logger = get_logger(__name__)
router = APIRouter(prefix="/api/v1")


# ---- helpers ---------------------------------------------------------------

def get_matcher() -> ScriptMatcher:
    return ScriptMatcher(MatcherConfig.from_settings())


Matcher = Annotated[ScriptMatcher, Depends(get_matcher)]


def _bad_request(exc: InputError) -> HTTPException:
    logger.info("request_rejected", error=str(exc))
    return HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))


# ---- health ----------------------------------------------------------------

health_router = APIRouter()


@health_router.get("/health")
async def health():
    return {"status": "ok"}


# ---- allocations -----------------------------------------------------------

@router.post("/allocations", response_model=AllocationRound)
async def create_allocation(req: AllocateRequest):
    bind_presentation_context(
        req.presentation_id or uuid.uuid4().hex[:12], slide_count=req.slide_count,
    )
    try:
        return allocate_script(
            req.script,
            req.slide_count,
            req.existing_allocations,
            req.granularity,
        )
    except InputError as exc:
        raise _bad_request(exc)
    finally:
        clear_context()


@router.post("/allocations/update", response_model=AllocationRound)
async def update_allocation(req: UpdateSlideRequest):
    try:
        return update_slide(req.allocation_round, req.slide_index, req.content)
    except InputError as exc:
        raise _bad_request(exc)


@router.post("/allocations/reset", response_model=AllocationRound)
async def reset_allocation(req: ResetSlideRequest):
    try:
        return reset_slide(req.allocation_round, req.slide_index)
    except InputError as exc:
        raise _bad_request(exc)


# ---- AI matching -----------------------------------------------------------

@router.post("/matches", response_model=MatchResponse)
async def match_script(req: MatchRequest, matcher: Matcher):
    try:
        validate_script(req.script)
    except InputError as exc:
        raise _bad_request(exc)

    bind_presentation_context(
        req.presentation_id or uuid.uuid4().hex[:12], slide_count=len(req.slides),
    )
    try:
        outcome = await matcher.match_detailed(req.slides, req.script)
    finally:
        clear_context()
    return MatchResponse(matches=outcome.matches, fallback_used=outcome.fallback_used)


@router.post("/matches/slides", response_model=MatchResponse)
async def match_slide_images(
    matcher: Matcher,
    script: str = Form(...),
    files: list[UploadFile] = File(...),
):
    try:
        validate_script(script)
        validate_slide_count(len(files))
    except InputError as exc:
        raise _bad_request(exc)

    images = [await f.read() for f in files]
    logger.info("slide_images_received", count=len(images), total_bytes=sum(map(len, images)))
    outcome = await matcher.match_slides(images, script)
    return MatchResponse(matches=outcome.matches, fallback_used=outcome.fallback_used)


# ---- practice --------------------------------------------------------------

@router.post("/practice/guides", response_model=GuideResponse)
async def practice_guides(req: GuideRequest):
    return GuideResponse(guides=content_guides(req.scripts))
