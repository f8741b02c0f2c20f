"""Configuration management for poof.

Loads and validates YAML-based configuration with Pydantic models.
Supports POOF_* environment variable overrides.
"""

from poof.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
