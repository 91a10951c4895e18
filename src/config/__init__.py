"""
Application configuration using Pydantic settings.

Configuration comes from environment variables, a .env file and defaults.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
