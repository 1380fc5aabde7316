"""Core: config, constants, composition root and application bootstrap.

Single place for settings, shared constants and the cache service container.
"""

from app.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
