"""School dataset ingestion."""
