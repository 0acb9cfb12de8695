"""Pinned-region tracker tests — span location, overlap, removal."""

from __future__ import annotations

import itertools
import random

import pytest

from scriptsync.allocation.tracker import locate, remaining_script, remove_spans
from scriptsync.models import PinnedSpan


class TestLocate:
    def test_single_part(self):
        script = "Alpha beta. Gamma delta."
        assert locate(script, ["Gamma delta."]) == [PinnedSpan(start=12, end=24)]

    def test_multiline_pin_is_split_into_lines(self):
        script = "Intro line.\nMiddle line.\nOutro line."
        spans = locate(script, ["Intro line.\n\n  Outro line.  "])
        assert spans == [PinnedSpan(start=0, end=11), PinnedSpan(start=25, end=36)]

    def test_repeated_text_claims_successive_occurrences(self):
        script = "Thank you. Thank you. Thank you."
        spans = locate(script, ["Thank you.", "Thank you."])
        assert spans == [PinnedSpan(start=0, end=10), PinnedSpan(start=11, end=21)]

    def test_space_joined_sentences_found_across_lines(self):
        script = "Alpha opens the talk.\nBravo sets the scene."
        spans = locate(script, ["Alpha opens the talk. Bravo sets the scene."])
        assert spans == [PinnedSpan(start=0, end=21), PinnedSpan(start=22, end=43)]

    def test_missing_text_is_skipped(self):
        spans = locate("Alpha beta.", ["Not in the script.", "beta."])
        assert spans == [PinnedSpan(start=6, end=11)]

    def test_part_found_only_inside_claimed_region_is_skipped(self):
        script = "The quick brown fox."
        spans = locate(script, ["The quick brown fox.", "brown"])
        assert spans == [PinnedSpan(start=0, end=20)]

    def test_blank_pins_ignored(self):
        assert locate("Anything.", ["", "   \n  "]) == []

    def test_spans_never_overlap(self):
        rng = random.Random(3)
        vocab = ["red", "green", "blue", "red green", "green blue", "blue red"]
        for _ in range(200):
            script = " ".join(rng.choice(vocab) for _ in range(rng.randint(1, 20)))
            pins = [rng.choice(vocab) for _ in range(rng.randint(0, 10))]
            spans = locate(script, pins)
            for a, b in itertools.combinations(spans, 2):
                assert not a.overlaps(b)


class TestRemoveSpans:
    def test_removal_back_to_front(self):
        script = "Keep A. Drop B. Keep C. Drop D."
        spans = [PinnedSpan(start=8, end=15), PinnedSpan(start=24, end=31)]
        assert remove_spans(script, spans) == "Keep A.  Keep C."

    def test_whitespace_normalization(self):
        script = "First.   \n\n\n\nSecond.\n\n"
        assert remove_spans(script, []) == "First.\n\nSecond."

    def test_remove_everything(self):
        script = "All of it."
        assert remove_spans(script, [PinnedSpan(start=0, end=len(script))]) == ""


class TestRemainingScript:
    def test_pinned_text_removed_once(self):
        script = "Hello. Hello. Goodbye."
        assert remaining_script(script, ["Hello."]) == "Hello. Goodbye."

    def test_unlocatable_pin_leaves_script_intact(self):
        script = "Nothing matches here."
        assert remaining_script(script, ["Brand new text."]) == script

    def test_no_pins_only_normalizes(self):
        assert remaining_script("  Padded.  \n\n\n", []) == "Padded."


class TestPinnedSpan:
    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            PinnedSpan(start=5, end=2)

    def test_touching_spans_do_not_overlap(self):
        assert not PinnedSpan(start=0, end=5).overlaps(PinnedSpan(start=5, end=9))
        assert PinnedSpan(start=0, end=6).overlaps(PinnedSpan(start=5, end=9))
