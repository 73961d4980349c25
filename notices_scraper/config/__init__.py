"""
Configuration module for announcement sources.

Provides:
- YAML config loading with validation
- Source definitions and run settings
- Environment variable substitution
"""

from .loader import ConfigLoader, RunSettings, load_settings, load_sources

__all__ = ["ConfigLoader", "RunSettings", "load_settings", "load_sources"]
