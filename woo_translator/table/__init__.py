"""CSV reading and writing for product exports."""
