"""Cross-cutting runtime helpers: logging and best-effort tasks."""
