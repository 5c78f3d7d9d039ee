"""Category bucketing and the map marker layer."""
