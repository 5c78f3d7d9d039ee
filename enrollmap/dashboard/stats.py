"""
Summary metrics and chart series for the dashboard header and charts.

Usage
-----
    stats = summarize(colleges)
    bars = top_by_attendance(colleges)          # [(name, attending), ...]
    dots = rate_distribution(colleges)          # [RatePoint, ...] sorted by rate
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..ingest.records import Entity

TOP_N = 8


@dataclass(frozen=True)
class SummaryStats:
    total_attending: int
    total_accepted: int
    avg_acceptance_rate: int          # whole percent, 0 when no entity has a rate
    most_popular: Optional[Entity]


@dataclass(frozen=True)
class RatePoint:
    entity_id: str
    name: str
    rate: float
    jitter: int                        # vertical position, percent of plot height


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def summarize(entities: Sequence[Entity]) -> SummaryStats:
    """Totals, mean acceptance rate over entities that have one, top destination.

    On a tie for most attending the later entity wins.
    """
    total_attending = sum(e.attending for e in entities)
    total_accepted = sum(e.accepted for e in entities)

    rates = [e.rate for e in entities if e.has_rate]
    avg = _round_half_up(sum(rates) / len(rates)) if rates else 0

    most_popular: Optional[Entity] = None
    for entity in entities:
        if most_popular is None or entity.attending >= most_popular.attending:
            most_popular = entity

    return SummaryStats(total_attending, total_accepted, avg, most_popular)


def top_by_attendance(entities: Sequence[Entity], n: int = TOP_N) -> List[Tuple[str, int]]:
    ranked = sorted(entities, key=lambda e: e.attending, reverse=True)
    return [(e.name, e.attending) for e in ranked[:n]]


def stable_jitter(entity_id: str) -> int:
    """Deterministic offset in [10, 90) from the id's character codes."""
    return sum(ord(ch) for ch in entity_id) % 80 + 10


def rate_distribution(entities: Sequence[Entity]) -> List[RatePoint]:
    with_rate = sorted((e for e in entities if e.has_rate), key=lambda e: e.rate)
    return [RatePoint(e.id, e.name, e.rate, stable_jitter(e.id)) for e in with_rate]
