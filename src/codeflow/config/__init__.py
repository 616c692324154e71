"""Configuration management for codeflow.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides.
"""

from codeflow.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
