"""Proportional allocator — distributes extracted units across slide buckets.

Two policies share one cardinality rule for sparse input (fewer units than
buckets): unit ``i`` lands in bucket ``floor(i * k / n)`` and the remaining
buckets stay empty.

- ``allocate``: count-based grouping, ``ceil(n / k)`` consecutive units per
  bucket, joined with a blank line.  Used for structural sections.
- ``allocate_balanced``: word-balanced grouping for sentences.  The target
  is recomputed after every bucket as remaining words / remaining buckets so
  early overshoot is paid back later, and the last bucket absorbs the tail.
"""

from __future__ import annotations

import math
from typing import Sequence

from scriptsync.allocation.extractor import extract
from scriptsync.allocation.validation import InputError
from scriptsync.config import get_allocation_config
from scriptsync.log import get_logger
from scriptsync.models import Granularity

logger = get_logger(__name__)

SECTION_SEPARATOR = "\n\n"
SENTENCE_SEPARATOR = " "
DEFAULT_SOFT_CEILING_RATIO = 1.3


def word_count(text: str) -> int:
    return len(text.split())


def _check_bucket_count(bucket_count: int) -> None:
    if bucket_count < 1:
        raise InputError(f"bucket_count must be >= 1, got {bucket_count}")


def _spread_sparse(units: Sequence[str], bucket_count: int) -> list[str]:
    """Place n <= k units at index-proportional buckets; others stay empty."""
    buckets = [""] * bucket_count
    n = len(units)
    for i, unit in enumerate(units):
        buckets[(i * bucket_count) // n] = unit
    return buckets


def allocate(units: Sequence[str], bucket_count: int) -> list[str]:
    """Group consecutive units into exactly *bucket_count* buckets."""
    _check_bucket_count(bucket_count)
    n = len(units)

    if n == 0:
        return [""] * bucket_count
    if n == bucket_count:
        return list(units)
    if n < bucket_count:
        return _spread_sparse(units, bucket_count)

    per_bucket = math.ceil(n / bucket_count)
    buckets: list[str] = []
    for b in range(bucket_count):
        start = b * per_bucket
        end = min(start + per_bucket, n)
        buckets.append(SECTION_SEPARATOR.join(units[start:end]))
    return buckets


def allocate_balanced(
    units: Sequence[str],
    bucket_count: int,
    *,
    soft_ceiling_ratio: float | None = None,
) -> list[str]:
    """Group consecutive units so each bucket holds roughly equal word counts."""
    _check_bucket_count(bucket_count)
    n = len(units)

    if n == 0:
        return [""] * bucket_count
    if n <= bucket_count:
        return _spread_sparse(units, bucket_count)

    if soft_ceiling_ratio is None:
        soft_ceiling_ratio = get_allocation_config().get(
            "soft_ceiling_ratio", DEFAULT_SOFT_CEILING_RATIO,
        )

    counts = [word_count(u) for u in units]
    buckets: list[str] = []
    idx = 0

    for b in range(bucket_count):
        remaining_buckets = bucket_count - b
        is_last = remaining_buckets == 1

        if is_last:
            buckets.append(SENTENCE_SEPARATOR.join(units[idx:]))
            idx = n
            break

        target = sum(counts[idx:]) / remaining_buckets
        taken: list[str] = []
        current = 0

        while idx < n:
            # Leave at least one unit for every bucket still to come.
            if n - idx <= remaining_buckets - 1:
                break

            words = counts[idx]
            if taken:
                over = (current + words) - target
                under = target - current
                if abs(over) > abs(under):
                    break

            taken.append(units[idx])
            current += words
            idx += 1

            if current > target * soft_ceiling_ratio:
                break

        buckets.append(SENTENCE_SEPARATOR.join(taken))

    logger.debug(
        "balanced_allocation",
        bucket_words=[word_count(bkt) for bkt in buckets],
    )
    return buckets


def split_script(
    script: str,
    bucket_count: int,
    granularity: Granularity = Granularity.SENTENCE,
) -> list[str]:
    """Extract units from *script* and allocate them to *bucket_count* buckets."""
    _check_bucket_count(bucket_count)
    units = extract(script, granularity)
    if granularity == Granularity.SENTENCE:
        return allocate_balanced(units, bucket_count)
    return allocate(units, bucket_count)
