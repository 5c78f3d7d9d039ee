"""
College records for one high school.

A dataset is a JSON array of objects, one per college::

    {"id": "uiuc", "name": "University of Illinois Urbana-Champaign",
     "city": "Champaign", "state": "IL", "lat": 40.102, "lng": -88.227,
     "attending": 52, "accepted": 131, "rate": 44.0}

Loading normalizes every record into an :class:`Entity`: numeric fields are
coerced (counts fall back to 0, a missing rate stays ``None``) and repeated
ids are disambiguated with a ``-N`` suffix so every entity id is unique in
the loaded set.

Usage
-----
    from enrollmap.ingest.records import load_school
    colleges = load_school("SYCAMORE")
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..settings import CONFIG_DIR, school_entry

log = logging.getLogger(__name__)


class DatasetError(ValueError):
    """A dataset could not be read or is not a list of records."""


@dataclass(frozen=True)
class Entity:
    """One college in the active dataset."""
    id: str
    name: str
    city: str
    state: str
    lat: Optional[float]
    lng: Optional[float]
    attending: int = 0
    accepted: int = 0
    rate: Optional[float] = None     # acceptance percentage 0–100

    @property
    def has_location(self) -> bool:
        """False when ungeocoded: coordinate absent, non-finite or (0, 0)."""
        if self.lat is None or self.lng is None:
            return False
        if not (math.isfinite(self.lat) and math.isfinite(self.lng)):
            return False
        return not (self.lat == 0 and self.lng == 0)

    @property
    def has_rate(self) -> bool:
        return self.rate is not None


# ── Coercion ──────────────────────────────────────────────────────────

def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _to_count(value: Any) -> int:
    f = _to_float(value)
    if f is None or f < 0:
        return 0
    return int(f)


def process_records(raw: Iterable[Any]) -> List[Entity]:
    """Normalize raw dataset rows into entities with unique ids."""
    seen: Dict[str, int] = {}
    out: List[Entity] = []
    skipped = 0
    for item in raw:
        if not isinstance(item, dict):
            skipped += 1
            continue
        base_id = str(item.get("id", ""))
        if base_id in seen:
            count = seen[base_id]
            unique_id = f"{base_id}-{count}"
            seen[base_id] = count + 1
        else:
            unique_id = base_id
            seen[base_id] = 1

        out.append(Entity(
            id=unique_id,
            name=str(item.get("name", "") or ""),
            city=str(item.get("city", "") or ""),
            state=str(item.get("state", "") or ""),
            lat=_to_float(item.get("lat")),
            lng=_to_float(item.get("lng")),
            attending=_to_count(item.get("attending")),
            accepted=_to_count(item.get("accepted")),
            rate=_to_float(item.get("rate")),
        ))

    if skipped:
        log.warning("Skipped %d non-object dataset rows", skipped)
    return out


# ── Loading ───────────────────────────────────────────────────────────

def _parse(text: str, source: str) -> List[Entity]:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DatasetError(f"{source}: invalid JSON ({exc})") from exc
    if not isinstance(raw, list):
        raise DatasetError(f"{source}: expected a JSON array of records")
    entities = process_records(raw)
    ungeocoded = sum(1 for e in entities if not e.has_location)
    log.info("Loaded %d colleges from %s (%d without location)",
             len(entities), source, ungeocoded)
    return entities


def load_dataset(path: Path) -> List[Entity]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DatasetError(f"{path}: {exc}") from exc
    return _parse(text, str(path))


def load_school(school_key: str, config_dir: Path = CONFIG_DIR) -> List[Entity]:
    """Load the dataset registered for ``school_key`` in schools.json."""
    entry = school_entry(school_key, config_dir)
    if not entry.get("file"):
        raise DatasetError(f"School '{school_key}' has no dataset file in schools.json")
    return load_dataset(config_dir / "datasets" / entry["file"])
