"""CLI de docs2qa."""
