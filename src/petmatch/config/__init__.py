"""Configuration package."""

from petmatch.config.settings import Settings

__all__ = ["Settings"]
