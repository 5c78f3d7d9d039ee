"""Bucket-key visibility flags shared by the map legend and the table."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, List, Optional

from ..markers.buckets import all_keys

log = logging.getLogger(__name__)


class FilterSet(Mapping):
    """Mapping of bucket key → visible.  Unknown keys are visible.

    Owned by the dashboard; the map reads it and asks the dashboard to
    ``toggle`` through a callback.
    """

    def __init__(self, hidden: Optional[Iterable[str]] = None):
        self._flags: Dict[str, bool] = {key: True for key in all_keys()}
        for key in hidden or ():
            self._flags[key] = False

    def __getitem__(self, key: str) -> bool:
        return self._flags[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._flags)

    def __len__(self) -> int:
        return len(self._flags)

    def is_visible(self, key: str) -> bool:
        return self._flags.get(key, True)

    def toggle(self, key: str) -> bool:
        """Flip ``key`` and return its new visibility."""
        visible = not self.is_visible(key)
        self._flags[key] = visible
        log.debug("Filter %s -> %s", key, "shown" if visible else "hidden")
        return visible

    def hidden_keys(self) -> List[str]:
        return [k for k, v in self._flags.items() if not v]
