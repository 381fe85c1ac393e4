"""Configuration: schema, loading and validation."""

from artaka.config.schema import AppConfig

__all__ = ["AppConfig"]
