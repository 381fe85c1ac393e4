"""artaka - a personal knowledge index driven by local language models."""

__version__ = "0.1.0"
