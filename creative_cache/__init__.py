"""Creative asset deduplication cache and download-session broker."""

__version__ = "0.1.0"
