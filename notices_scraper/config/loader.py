"""
YAML configuration loader with validation.

Loads the source registry and run settings from YAML files with:
- Environment variable substitution
- Schema validation (via SourceConfig.from_dict)
- Default values
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

import yaml
import structlog

from notices_scraper.core.errors import ConfigError
from notices_scraper.navigators.base import SourceConfig

logger = structlog.get_logger(__name__)

DEFAULT_TIMEZONE = "Asia/Seoul"
DEFAULT_KEEP_DAYS = 7


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variables in text.

    Supports formats:
    - ${VAR_NAME} - empty (with a warning) if missing
    - ${VAR_NAME:-default} - optional with default

    Args:
        text: Text with env var placeholders

    Returns:
        Text with substituted values
    """
    def replace(match):
        var_expr = match.group(1)
        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)
        value = os.getenv(var_expr)
        if value is None:
            logger.warning("env_var_not_set", var=var_expr)
            return ""
        return value

    return re.sub(r"\$\{([^}]+)\}", replace, text)


@dataclass
class RunSettings:
    """Run-wide settings from the `settings:` section."""

    data_dir: str = "data"
    timezone: str = DEFAULT_TIMEZONE
    keep_days: int = DEFAULT_KEEP_DAYS
    export_file: str = "today-list.json"

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RunSettings":
        data = data or {}
        try:
            keep_days = int(data.get("keep_days", DEFAULT_KEEP_DAYS))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid keep_days: {data.get('keep_days')!r}") from e
        if keep_days < 1:
            raise ConfigError(f"keep_days must be at least 1, got {keep_days}")

        return cls(
            data_dir=data.get("data_dir") or "data",
            timezone=data.get("timezone") or DEFAULT_TIMEZONE,
            keep_days=keep_days,
            export_file=data.get("export_file") or "today-list.json",
        )


class ConfigLoader:
    """
    Configuration loader for announcement sources.

    Loads YAML config files and validates against expected schema.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files
                       (defaults to package config directory)
        """
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = Path(__file__).parent

    def load_file(self, filename: str) -> dict:
        """
        Load YAML config file.

        Args:
            filename: Config file name (relative to config_dir)

        Returns:
            Parsed config dict

        Raises:
            ConfigError: file missing or not valid YAML
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            raise ConfigError(f"Config file not found: {filepath}")

        logger.info("loading_config", file=str(filepath))

        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()

        content = substitute_env_vars(content)

        try:
            config = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {filepath}: {e}") from e

        if config is not None and not isinstance(config, dict):
            raise ConfigError(f"Config root must be a mapping: {filepath}")
        return config or {}

    def load_sources(
        self,
        filename: str = "sources.yml",
        only: Optional[Iterable[str]] = None,
    ) -> list[SourceConfig]:
        """
        Load source definitions from YAML.

        Invalid entries are logged and skipped; the rest still load.

        Args:
            filename: Sources config file name
            only: Optional source ids to keep (in config order)

        Returns:
            List of SourceConfig objects

        Raises:
            ConfigError: an id in `only` is not defined
        """
        config = self.load_file(filename)
        wanted = set(only) if only else None

        sources = []
        for source_data in config.get("sources") or []:
            if not isinstance(source_data, dict):
                logger.error("source_load_failed", source="unknown", error="entry is not a mapping")
                continue
            if wanted is not None and source_data.get("source_id") not in wanted:
                continue
            if source_data.get("enabled") is False:
                logger.info("source_disabled", source_id=source_data.get("source_id"))
                continue
            try:
                source = SourceConfig.from_dict(source_data)
            except ConfigError as e:
                logger.error(
                    "source_load_failed",
                    source=source_data.get("source_id", "unknown"),
                    error=str(e),
                )
                continue
            sources.append(source)
            logger.info("source_loaded", source_id=source.source_id)

        if wanted is not None:
            unknown = wanted - {source.source_id for source in sources}
            if unknown:
                raise ConfigError(f"Unknown or invalid sources: {', '.join(sorted(unknown))}")

        return sources

    def load_settings(self, filename: str = "sources.yml") -> RunSettings:
        """Load the `settings:` section (defaults when absent)."""
        return RunSettings.from_dict(self.load_file(filename).get("settings"))


def load_sources(config_path: Optional[str] = None, only: Optional[Iterable[str]] = None) -> list[SourceConfig]:
    """
    Convenience function to load source configs.

    Args:
        config_path: Optional path to sources.yml
        only: Optional source ids to keep

    Returns:
        List of SourceConfig objects
    """
    if config_path:
        loader = ConfigLoader(str(Path(config_path).parent))
        return loader.load_sources(Path(config_path).name, only=only)
    return ConfigLoader().load_sources(only=only)


def load_settings(config_path: Optional[str] = None) -> RunSettings:
    """Convenience function to load run settings."""
    if config_path:
        return ConfigLoader(str(Path(config_path).parent)).load_settings(Path(config_path).name)
    return ConfigLoader().load_settings()
