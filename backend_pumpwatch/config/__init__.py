"""
Configuration management for the Pumpwatch backend.

Loads settings from environment variables and the project .env file.
"""

from backend_pumpwatch.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
