"""Web-Mercator projection, viewport and raster tile grid."""
