"""Revenue projection landing pages for short-term rental homeowners."""

__version__ = "0.1.0"
