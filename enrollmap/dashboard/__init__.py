"""Dashboard collaborators: filters, summary metrics, table query."""
