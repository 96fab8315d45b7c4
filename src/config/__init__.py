"""Configuration module -- exports the Settings model."""

from src.config.settings import Settings

__all__ = ["Settings"]
