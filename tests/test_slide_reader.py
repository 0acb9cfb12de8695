"""Slide reader tests — image preparation, batching, placeholders."""

from __future__ import annotations

import asyncio
import base64
import io
import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from PIL import Image

from scriptsync.ai_matching.image_prep import ImagePrepError, prepare_slide_image
from scriptsync.ai_matching.slide_reader import SlideReader, analysis_from_json
from scriptsync.models import SlideAnalysis


def _analysis_reply(topic: str) -> httpx.Response:
    content = json.dumps({
        "allText": f"{topic} title",
        "mainTopic": topic,
        "keyPoints": ["first", "second"],
        "recommendedDuration": "45",
    })
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


class TestImagePrep:
    def test_downscales_to_box_and_encodes_jpeg(self, png_bytes):
        encoded = prepare_slide_image(png_bytes(1600, 1200))
        img = Image.open(io.BytesIO(base64.b64decode(encoded)))
        assert img.format == "JPEG"
        assert img.size == (800, 600)

    def test_keeps_aspect_ratio(self, png_bytes):
        encoded = prepare_slide_image(png_bytes(2000, 500))
        img = Image.open(io.BytesIO(base64.b64decode(encoded)))
        assert img.size == (800, 200)

    def test_small_images_not_upscaled(self, png_bytes):
        encoded = prepare_slide_image(png_bytes(320, 240))
        img = Image.open(io.BytesIO(base64.b64decode(encoded)))
        assert img.size == (320, 240)

    def test_garbage_bytes_rejected(self):
        with pytest.raises(ImagePrepError):
            prepare_slide_image(b"definitely not an image")


class TestAnalysisFromJson:
    def test_camel_case_mapping(self):
        analysis = analysis_from_json({
            "mainTopic": "Roadmap",
            "keyPoints": ["Q1", 2, None, " "],
            "visualElements": "chart",
            "recommendedDuration": "ninety",
        }, 4)
        assert analysis.main_topic == "Roadmap"
        assert analysis.key_points == ["Q1", "2"]
        assert analysis.visual_elements == ["chart"]
        assert analysis.recommended_duration == 60
        assert analysis.analyzed

    def test_missing_topic_uses_slide_number(self):
        assert analysis_from_json({}, 7).main_topic == "Slide 7"


class TestAnalyzeSlide:
    @pytest.mark.asyncio
    async def test_success(self, make_openai_adapter, png_bytes):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return _analysis_reply("Revenue")

        reader = SlideReader(make_openai_adapter(handler))
        analysis = await reader.analyze_slide(png_bytes(), 1)

        assert analysis.main_topic == "Revenue"
        assert analysis.recommended_duration == 45
        assert seen["body"]["model"] == "gpt-4o-mini"
        assert seen["body"]["max_tokens"] == 1200
        assert seen["body"]["messages"][0]["content"][1]["type"] == "image_url"

    @pytest.mark.asyncio
    async def test_unreadable_image_gives_placeholder(self, make_openai_adapter):
        reader = SlideReader(make_openai_adapter(lambda r: _analysis_reply("unused")))
        analysis = await reader.analyze_slide(b"nope", 3)
        assert analysis == SlideAnalysis.placeholder(3)
        assert not analysis.analyzed

    @pytest.mark.asyncio
    async def test_provider_failure_gives_placeholder(self, make_openai_adapter, png_bytes):
        reader = SlideReader(make_openai_adapter(lambda r: httpx.Response(503)))
        analysis = await reader.analyze_slide(png_bytes(), 2)
        assert analysis.main_topic == "Slide 2"
        assert not analysis.analyzed

    @pytest.mark.asyncio
    async def test_unparseable_reply_gives_placeholder(self, make_openai_adapter, png_bytes):
        reply = httpx.Response(200, json={"choices": [{"message": {"content": "I see a slide."}}]})
        reader = SlideReader(make_openai_adapter(lambda r: reply))
        assert not (await reader.analyze_slide(png_bytes(), 1)).analyzed


class TestAnalyzeSlides:
    @pytest.mark.asyncio
    async def test_batches_and_order(self, make_openai_adapter, png_bytes):
        reader = SlideReader(make_openai_adapter(
            lambda r: _analysis_reply("topic"), max_concurrent=2, batch_delay_seconds=0.5,
        ))
        calls: list[int] = []

        async def fake_analyze(image, slide_number):
            calls.append(slide_number)
            return SlideAnalysis(main_topic=f"T{slide_number}")

        with patch.object(reader, "analyze_slide", side_effect=fake_analyze), \
             patch("scriptsync.ai_matching.slide_reader.asyncio.sleep", new=AsyncMock()) as sleep:
            analyses = await reader.analyze_slides([b"1", b"2", b"3", b"4", b"5"])

        assert [a.main_topic for a in analyses] == ["T1", "T2", "T3", "T4", "T5"]
        assert calls == [1, 2, 3, 4, 5]
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    @pytest.mark.asyncio
    async def test_exception_becomes_placeholder(self, make_openai_adapter):
        reader = SlideReader(make_openai_adapter(lambda r: _analysis_reply("x")))

        async def flaky(image, slide_number):
            if slide_number == 2:
                raise RuntimeError("boom")
            return SlideAnalysis(main_topic="ok")

        with patch.object(reader, "analyze_slide", side_effect=flaky):
            analyses = await reader.analyze_slides([b"a", b"b", b"c"])

        assert [a.analyzed for a in analyses] == [True, False, True]
        assert analyses[1].main_topic == "Slide 2"

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, make_openai_adapter):
        reader = SlideReader(make_openai_adapter(lambda r: _analysis_reply("x")))

        async def cancelled(image, slide_number):
            raise asyncio.CancelledError()

        with patch.object(reader, "analyze_slide", side_effect=cancelled):
            with pytest.raises(asyncio.CancelledError):
                await reader.analyze_slides([b"a"])

    @pytest.mark.asyncio
    async def test_end_to_end_with_real_images(self, make_openai_adapter, png_bytes):
        reader = SlideReader(make_openai_adapter(lambda r: _analysis_reply("Agenda")))
        analyses = await reader.analyze_slides([png_bytes(), b"broken", png_bytes(640, 480)])
        assert [a.analyzed for a in analyses] == [True, False, True]
        assert analyses[2].to_summary().topic == "Agenda"
