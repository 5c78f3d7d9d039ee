"""
College table query: search, category filter and sort.

The table shares the map's filters: a row is listed only when its bucket
key in the active mode is visible.  Unlike the map, ungeocoded colleges are
listed.

A rate of ``0`` is shown as ``0%``; only a missing rate reads ``N/A``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Sequence

from ..ingest.records import Entity
from ..markers.buckets import get_category_key

ASC = "asc"
DESC = "desc"

# column key → header text, in display order
COLUMNS = (
    ("name", "College"),
    ("state", "Location"),
    ("attending", "Attending"),
    ("accepted", "Accepted"),
    ("rate", "Acceptance Rate"),
)
SORT_KEYS = tuple(key for key, _ in COLUMNS)


@dataclass(frozen=True)
class SortConfig:
    key: str = "attending"
    direction: str = DESC


def next_sort(current: SortConfig, key: str) -> SortConfig:
    """Clicking a header: a descending column flips to ascending, anything else goes descending."""
    if current.key == key and current.direction == DESC:
        return SortConfig(key, ASC)
    return SortConfig(key, DESC)


def _matches(entity: Entity, needle: str) -> bool:
    return (
        needle in entity.name.lower()
        or needle in entity.city.lower()
        or needle in entity.state.lower()
    )


def _sort_value(entity: Entity, key: str):
    value = getattr(entity, key)
    return -1 if value is None else value


def query_rows(
    entities: Sequence[Entity],
    search: str,
    mode: str,
    filters: Mapping[str, bool],
    sort: SortConfig = SortConfig(),
) -> List[Entity]:
    if sort.key not in SORT_KEYS:
        raise ValueError(f"Cannot sort by {sort.key!r}; expected one of {SORT_KEYS}")

    rows = list(entities)
    needle = search.strip().lower()
    if needle:
        rows = [e for e in rows if _matches(e, needle)]
    rows = [e for e in rows if filters.get(get_category_key(e, mode), True) is not False]
    rows.sort(key=lambda e: _sort_value(e, sort.key), reverse=sort.direction == DESC)
    return rows


def format_rate(entity: Entity) -> str:
    return "N/A" if entity.rate is None else f"{entity.rate:g}%"


def format_location(entity: Entity) -> str:
    return ", ".join(part for part in (entity.city, entity.state) if part)
