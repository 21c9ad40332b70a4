"""
Configuration module for the harvester.

Provides:
- YAML config loading with validation
- Settings dataclasses
- Environment variable substitution
"""

from .loader import ConfigLoader, RateLimitConfig, Settings, load_settings, substitute_env_vars

__all__ = ["ConfigLoader", "RateLimitConfig", "Settings", "load_settings", "substitute_env_vars"]
