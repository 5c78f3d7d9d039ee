"""
Raster tile loader.

Fetches 256×256 map tiles from an XYZ endpoint on a small thread pool and
hands the image bytes to a callback.  Loading is fire-and-forget: the caller
never waits on a request and never cancels one.

A tile that fails (HTTP error, network error, payload Pillow cannot decode)
is remembered as failed and never requested again during the session; the
cell just stays empty.  Nothing is written to disk.

Usage
-----
    source = TileSource(TILE_URL, on_loaded=lambda key, data: ...)
    for tile in build_tile_grid(viewport):
        source.request(tile)
    ...
    source.close()
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import Callable, Optional, Set, Tuple

import requests
from PIL import Image, UnidentifiedImageError

from .tile_grid import Tile, tile_url

log = logging.getLogger(__name__)

TileKey = Tuple[int, int, int]

_USER_AGENT = "enrollmap/0.1 (python-requests)"
_REQUEST_TIMEOUT = 15  # seconds


def fetch_tile_image(
    url: str,
    session: Optional[requests.Session] = None,
) -> Optional[bytes]:
    """Download one tile and return PNG bytes, or None on any failure.

    The payload is decoded with Pillow so truncated or non-image responses
    are rejected here rather than handed to the renderer.
    """
    http = session or requests
    try:
        resp = http.get(url, timeout=_REQUEST_TIMEOUT)
    except requests.RequestException as exc:
        log.debug("Tile %s network error: %s", url, exc)
        return None

    if resp.status_code != 200:
        log.debug("Tile %s failed: HTTP %d", url, resp.status_code)
        return None

    try:
        img = Image.open(BytesIO(resp.content))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        log.debug("Tile %s undecodable (%d bytes): %s", url, len(resp.content), exc)
        return None

    if img.format == "PNG":
        return resp.content
    out = BytesIO()
    img.convert("RGBA").save(out, "PNG")
    return out.getvalue()


class TileSource:
    """Thread-pool tile loader with pending / failed bookkeeping.

    ``on_loaded(key, data)`` runs on a worker thread; GUI code must marshal
    it to the main thread (the map widget does so through a Qt signal).
    """

    def __init__(
        self,
        url_template: str,
        on_loaded: Callable[[TileKey, bytes], None],
        max_workers: int = 6,
    ):
        self._template = url_template
        self._on_loaded = on_loaded
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="tile-fetch",
        )
        self._session = requests.Session()
        self._session.headers["User-Agent"] = _USER_AGENT
        self._lock = threading.Lock()
        self._pending: Set[TileKey] = set()
        self._loaded: Set[TileKey] = set()
        self._failed: Set[TileKey] = set()
        self._closed = False

    def is_failed(self, key: TileKey) -> bool:
        with self._lock:
            return key in self._failed

    def request(self, tile: Tile) -> bool:
        """Schedule ``tile`` unless it is pending, loaded or failed.

        Returns True when a new download was scheduled.
        """
        key = tile.key
        with self._lock:
            if self._closed or key in self._pending or key in self._loaded or key in self._failed:
                return False
            self._pending.add(key)
        self._executor.submit(self._load, key, tile_url(self._template, tile))
        return True

    def forget(self, key: TileKey) -> None:
        """Allow ``key`` to be requested again (its image was evicted)."""
        with self._lock:
            self._loaded.discard(key)

    def _load(self, key: TileKey, url: str) -> None:
        data = fetch_tile_image(url, self._session)
        with self._lock:
            self._pending.discard(key)
            if data is None:
                self._failed.add(key)
            else:
                self._loaded.add(key)
        if data is None:
            log.debug("Tile %s/%s/%s left empty", *key)
            return
        try:
            self._on_loaded(key, data)
        except RuntimeError as exc:
            # receiver already destroyed during shutdown
            log.debug("Tile callback dropped for %s: %s", key, exc)

    def stats(self) -> dict:
        with self._lock:
            return {
                "pending": len(self._pending),
                "loaded": len(self._loaded),
                "failed": len(self._failed),
            }

    def close(self, wait: bool = False) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)
        self._session.close()
        log.info("TileSource closed: %s", self.stats())
