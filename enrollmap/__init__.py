"""
enrollmap — college enrollment dashboard.

Entry point: python -m enrollmap.gui_main

Provides:
- Web-Mercator projection, viewport and tile grid math (geo/)
- Pan / zoom interaction state machine (interaction/)
- Category bucketing and marker placement (markers/)
- Dataset loading and normalization (ingest/)
- Summary metrics, table query and filters (dashboard/)
- PyQt5 GUI with tile map, charts and college table (gui/, gui_main)
"""
