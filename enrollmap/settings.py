"""
Application settings and dataset configuration.

Constants that shape the map behaviour live here, together with the loader
for ``config/schools.json`` which lists the selectable school datasets.

Environment overrides
---------------------
  ENROLLMAP_TILE_URL    — tile endpoint template with {z}/{x}/{y}
  ENROLLMAP_CONFIG_DIR  — directory holding schools.json and datasets/

Usage
-----
    from enrollmap.settings import load_school_config
    cfg = load_school_config()
    cfg["SYCAMORE"]["name"]  # "Sycamore High School"
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict

log = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
CONFIG_DIR = Path(os.environ.get("ENROLLMAP_CONFIG_DIR", PACKAGE_DIR / "config"))

# ── Map constants ─────────────────────────────────────────────────────

TILE_SIZE = 256
MIN_ZOOM = 2.0
MAX_ZOOM = 12.0

WHEEL_ZOOM_STEP = 0.5
BUTTON_ZOOM_STEP = 1.0
TAP_THRESHOLD_PX = 5.0      # accumulated drag distance below this is a tap
CULL_MARGIN_PX = 50.0

DEFAULT_CENTER = (39.8283, -98.5795)   # geographic centre of the contiguous US
DEFAULT_ZOOM = 4.0
DEFAULT_SIZE = (800, 600)

DEFAULT_TILE_URL = "https://a.basemaps.cartocdn.com/light_all/{z}/{x}/{y}.png"
TILE_URL = os.environ.get("ENROLLMAP_TILE_URL", DEFAULT_TILE_URL)

DEFAULT_SCHOOL = "SYCAMORE"


def load_school_config(config_dir: Path = CONFIG_DIR) -> Dict[str, dict]:
    """Return the school registry keyed by school id.

    Each entry has a display ``name`` and a ``file`` relative to
    ``config_dir / "datasets"``.
    """
    cfg_path = config_dir / "schools.json"
    with cfg_path.open("r", encoding="utf-8") as f:
        cfg = json.load(f)
    log.debug("Loaded %d school entries from %s", len(cfg), cfg_path)
    return cfg


def school_entry(school_key: str, config_dir: Path = CONFIG_DIR) -> dict:
    cfg = load_school_config(config_dir)
    if school_key not in cfg:
        raise KeyError(f"School '{school_key}' not found in schools.json")
    return cfg[school_key]
