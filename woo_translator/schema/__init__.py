"""Header-driven row schema."""
