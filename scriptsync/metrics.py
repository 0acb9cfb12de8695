"""Prometheus-style metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram, generate_latest

# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------

ALLOCATIONS_TOTAL = Counter(
    "scriptsync_allocations_total",
    "Allocation rounds computed",
    ["operation", "granularity"],  # operation: allocate | update | reset
)

PIN_LOCATION_MISSES = Counter(
    "scriptsync_pin_location_misses_total",
    "Pinned text parts that could not be located in the original script",
)

# ---------------------------------------------------------------------------
# AI matching
# ---------------------------------------------------------------------------

AI_MATCHES_TOTAL = Counter(
    "scriptsync_ai_matches_total",
    "AI script matches by extraction strategy",
    ["strategy"],  # direct_json | bracket_scan | numbered_list | quoted_strings | paragraphs
)

AI_FALLBACKS_TOTAL = Counter(
    "scriptsync_ai_fallbacks_total",
    "AI matches that degraded to the proportional allocator",
    ["reason"],  # provider_error | unparseable | empty | low_confidence | exception
)

PROVIDER_ERRORS_TOTAL = Counter(
    "scriptsync_provider_errors_total",
    "Failed provider calls",
    ["provider", "category"],
)

PROVIDER_LATENCY = Histogram(
    "scriptsync_provider_latency_seconds",
    "Wall-clock time per provider call",
    ["provider", "kind"],  # kind: text | vision
    buckets=[0.5, 1, 2, 5, 10, 20, 30],
)

SLIDE_ANALYSES_TOTAL = Counter(
    "scriptsync_slide_analyses_total",
    "Vision slide analyses",
    ["result"],  # success | placeholder
)


def metrics_text() -> bytes:
    """Return Prometheus exposition text."""
    return generate_latest()
