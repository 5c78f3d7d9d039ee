"""Qt widgets: map surface, charts, metric cards."""
