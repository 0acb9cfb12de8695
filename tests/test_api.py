"""HTTP surface tests."""

from __future__ import annotations

import json

import pytest


class TestHealthAndMetrics:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_metrics_exposed(self, client):
        client.post("/api/v1/allocations", json={"script": "One. Two.", "slide_count": 2})
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "scriptsync_allocations_total" in resp.text


class TestAllocationRoutes:
    def test_allocate(self, client, sample_script):
        resp = client.post("/api/v1/allocations", json={"script": sample_script, "slide_count": 3})
        assert resp.status_code == 200
        body = resp.json()
        assert [s["slide_index"] for s in body["slides"]] == [0, 1, 2]
        assert body["granularity"] == "sentence"

    def test_allocate_by_section(self, client):
        resp = client.post("/api/v1/allocations", json={
            "script": "# A\nfirst\n# B\nsecond",
            "slide_count": 2,
            "granularity": "section",
        })
        assert [s["content"] for s in resp.json()["slides"]] == ["# A\nfirst", "# B\nsecond"]

    def test_invalid_slide_count_is_400(self, client):
        resp = client.post("/api/v1/allocations", json={"script": "x", "slide_count": 0})
        assert resp.status_code == 400
        assert "at least" in resp.json()["detail"]

    def test_update_then_reset(self, client, sample_script):
        round_ = client.post(
            "/api/v1/allocations", json={"script": sample_script, "slide_count": 3},
        ).json()

        updated = client.post("/api/v1/allocations/update", json={
            "allocation_round": round_,
            "slide_index": 1,
            "content": "My own words.",
        })
        assert updated.status_code == 200
        slides = updated.json()["slides"]
        assert slides[1] == {"slide_index": 1, "content": "My own words.", "is_manually_set": True}

        reset = client.post("/api/v1/allocations/reset", json={
            "allocation_round": updated.json(),
            "slide_index": 1,
        })
        assert reset.status_code == 200
        assert reset.json()["slides"] == round_["slides"]

    def test_update_out_of_range_is_400(self, client, sample_script):
        round_ = client.post(
            "/api/v1/allocations", json={"script": sample_script, "slide_count": 2},
        ).json()
        resp = client.post("/api/v1/allocations/update", json={
            "allocation_round": round_, "slide_index": 9, "content": "x",
        })
        assert resp.status_code == 400

    @pytest.mark.parametrize("path", ["/api/v1/allocations/update", "/api/v1/allocations/reset"])
    def test_oversized_round_is_400(self, client, path):
        resp = client.post(path, json={
            "allocation_round": {"full_script": "x" * 100_001, "slides": [{"slide_index": 0}]},
            "slide_index": 0,
            "content": "Short.",
        })
        assert resp.status_code == 400
        assert "too large" in resp.json()["detail"]

    def test_malformed_round_is_422(self, client):
        resp = client.post("/api/v1/allocations/reset", json={
            "allocation_round": {"full_script": "x", "slides": [{"slide_index": 3}]},
            "slide_index": 0,
        })
        assert resp.status_code == 422


class TestMatchRoutes:
    def test_without_api_key_falls_back(self, client, sample_script):
        resp = client.post("/api/v1/matches", json={
            "script": sample_script,
            "slides": [{"topic": "Intro"}, {"topic": "Revenue"}],
        })
        assert resp.status_code == 200
        body = resp.json()
        assert body["fallback_used"] is True
        assert len(body["matches"]) == 2
        assert all(m["reasoning"] == "fallback" for m in body["matches"])

    def test_ai_reply_used(self, client_with_reply, sample_script):
        c = client_with_reply(json.dumps(["Part one of the talk.", "Part two of the talk."]))
        resp = c.post("/api/v1/matches", json={
            "script": sample_script,
            "slides": [{"topic": "One"}, {"topic": "Two"}],
        })
        body = resp.json()
        assert body["fallback_used"] is False
        assert [m["script_section"] for m in body["matches"]] == [
            "Part one of the talk.", "Part two of the talk.",
        ]

    def test_slide_images(self, client_with_reply, png_bytes, sample_script):
        c = client_with_reply("not json at all")
        resp = c.post(
            "/api/v1/matches/slides",
            data={"script": sample_script},
            files=[
                ("files", ("s1.png", png_bytes(), "image/png")),
                ("files", ("s2.png", png_bytes(), "image/png")),
            ],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["fallback_used"] is True
        assert [m["slide_number"] for m in body["matches"]] == [1, 2]


class TestPracticeRoutes:
    def test_guides(self, client):
        resp = client.post("/api/v1/practice/guides", json={
            "scripts": ["Remember the key date.", "Moving on to the Budget."],
        })
        assert resp.status_code == 200
        guides = resp.json()["guides"]
        assert len(guides) == 2
        assert guides[0]["guide"]["transition_to"] == "This leads us to examine moving..."
        assert guides[1]["processed"]["transition_phrases"] == ["Moving on to the Budget"]
