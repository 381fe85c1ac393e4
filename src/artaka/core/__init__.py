"""Core algorithms: similarity, dedup, text cleanup, content extraction."""
