"""
Category buckets for attendance counts and acceptance rates.

Each mode has an ordered table of :class:`Bucket` rows, highest lower bound
first.  A value falls into the first row whose ``lower_bound`` it reaches
(intervals are closed below, open above).  The same key drives marker
colour, marker radius, the legend and the table/legend filters, so they can
never disagree.

    attendance   >=50 HIGH   >=20 MED   >=10 LOW   >=5 VERY_LOW   else MIN
    acceptance   absent UNKNOWN   >=80 OPEN   >=50 MODERATE   >=20 SELECTIVE
                 >=10 LOW   >=5 VERY_LOW   else EXTREME

Note that ``LOW`` and ``VERY_LOW`` exist in both tables; a filter on either
key applies in both modes.

A rate of ``0`` is a reported rate, not a missing one: it lands in
``EXTREME``.  Only ``None`` or NaN counts as ``UNKNOWN``.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

ATTENDING = "attending"
ACCEPTANCE = "acceptance"
MODES = (ATTENDING, ACCEPTANCE)


@dataclass(frozen=True)
class Bucket:
    lower_bound: float
    key: str
    color: str
    radius: int
    label: str


ATTENDING_BUCKETS: Sequence[Bucket] = (
    Bucket(50, "HIGH", "#ef4444", 24, "50+ Students"),
    Bucket(20, "MED", "#f97316", 18, "20-49 Students"),
    Bucket(10, "LOW", "#eab308", 14, "10-19 Students"),
    Bucket(5, "VERY_LOW", "#84cc16", 10, "5-9 Students"),
    Bucket(-math.inf, "MIN", "#3b82f6", 6, "1-4 Students"),
)

ACCEPTANCE_BUCKETS: Sequence[Bucket] = (
    Bucket(80, "OPEN", "#22c55e", 8, "> 80% Rate"),
    Bucket(50, "MODERATE", "#eab308", 10, "50-80% Rate"),
    Bucket(20, "SELECTIVE", "#f97316", 12, "20-50% Rate"),
    Bucket(10, "LOW", "#ef4444", 16, "10-20% Rate"),
    Bucket(5, "VERY_LOW", "#b91c1c", 20, "5-10% Rate"),
    Bucket(-math.inf, "EXTREME", "#7f1d1d", 24, "< 5% Rate"),
)

UNKNOWN_BUCKET = Bucket(math.nan, "UNKNOWN", "#94a3b8", 8, "Unknown Rate")


def first_match(table: Sequence[Bucket], value: float) -> Bucket:
    for bucket in table:
        if value >= bucket.lower_bound:
            return bucket
    return table[-1]


def metric_value(entity, mode: str) -> Optional[float]:
    """The value bucketed in ``mode``; None means the rate is absent."""
    if mode == ATTENDING:
        return float(entity.attending)
    if mode == ACCEPTANCE:
        rate = entity.rate
        if rate is None or (isinstance(rate, float) and math.isnan(rate)):
            return None
        return float(rate)
    raise ValueError(f"Unknown mode {mode!r}; expected one of {MODES}")


def bucket_for(entity, mode: str) -> Bucket:
    value = metric_value(entity, mode)
    if value is None:
        return UNKNOWN_BUCKET
    table = ATTENDING_BUCKETS if mode == ATTENDING else ACCEPTANCE_BUCKETS
    return first_match(table, value)


def get_category_key(entity, mode: str) -> str:
    return bucket_for(entity, mode).key


def legend_entries(mode: str) -> List[Bucket]:
    """Buckets in legend order (the order the table lists them)."""
    if mode == ATTENDING:
        return list(ATTENDING_BUCKETS)
    if mode == ACCEPTANCE:
        return list(reversed(ACCEPTANCE_BUCKETS)) + [UNKNOWN_BUCKET]
    raise ValueError(f"Unknown mode {mode!r}; expected one of {MODES}")


def all_keys() -> List[str]:
    keys: Dict[str, None] = {}
    for bucket in (*ATTENDING_BUCKETS, *ACCEPTANCE_BUCKETS, UNKNOWN_BUCKET):
        keys[bucket.key] = None
    return list(keys)
