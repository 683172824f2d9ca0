"""Web interface for revproj."""
