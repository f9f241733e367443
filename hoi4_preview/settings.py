"""Settings manager for settings.yaml files.

Manages three-scope settings system:
- User global (~/.hoi4preview/settings.yaml)
- Project (.hoi4preview/settings.yaml)
- Local (.hoi4preview/settings.local.yaml)
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

from .errors import UserError

logger = logging.getLogger(__name__)


class PathSettings(BaseModel):
    game: Path | None = Field(default=None, description="Base game install directory")
    mod: Path | None = Field(default=None, description="Mod directory, searched before the game")


class PreviewOptions(BaseModel):
    resolve_sprites: bool = Field(default=True, description="Load gfx files to resolve technology icons")


class CacheSettings(BaseModel):
    life_seconds: float = Field(default=10 * 60, gt=0, description="Time-to-live of image and sprite caches")


class LoggingSettings(BaseModel):
    level: str = "INFO"
    path: str | None = None


class PreviewSettings(BaseModel):
    """Validated, merged settings."""

    paths: PathSettings = Field(default_factory=PathSettings)
    preview: PreviewOptions = Field(default_factory=PreviewOptions)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class SettingsManager:
    """Manages settings across user/project/local scopes."""

    def __init__(self, settings_dir: Path | None = None, user_settings_file: Path | None = None):
        """Initialize settings manager with standard paths.

        Args:
            settings_dir: Base directory for project/local settings (for testing).
                          If None, uses .hoi4preview in current directory.
            user_settings_file: User settings file (for testing).
                          If None, uses ~/.hoi4preview/settings.yaml.
        """
        if settings_dir is None:
            settings_dir = Path(".hoi4preview")

        self.user_settings_file = user_settings_file or Path.home() / ".hoi4preview" / "settings.yaml"
        self.project_settings_file = settings_dir / "settings.yaml"
        self.local_settings_file = settings_dir / "settings.local.yaml"

    def load(self, overrides: dict[str, Any] | None = None) -> PreviewSettings:
        """Load merged settings, applying command-line overrides last.

        Raises:
            UserError: If the merged settings are invalid
        """
        merged = self.get_merged_settings()
        if overrides:
            merged = self._deep_merge(merged, overrides)

        try:
            return PreviewSettings.model_validate(merged)
        except ValidationError as e:
            raise UserError(f"Invalid settings: {e}") from e

    def set_value(self, dotted_key: str, value: Any, scope: str = "project") -> None:
        """Set one setting, e.g. ``set_value("paths.mod", "/mods/x")``.

        Args:
            dotted_key: Setting key with sections separated by dots
            value: New value
            scope: "user", "project", or "local"
        """
        file_map = {
            "user": self.user_settings_file,
            "project": self.project_settings_file,
            "local": self.local_settings_file,
        }

        target_file = file_map.get(scope, self.project_settings_file)
        update: dict[str, Any] = {}
        node = update
        *sections, leaf = dotted_key.split(".")
        for section in sections:
            node = node.setdefault(section, {})
        node[leaf] = value

        self._update_settings(target_file, update)
        logger.info(f"Set {scope} setting {dotted_key} = {value!r}")

    def get_merged_settings(self) -> dict[str, Any]:
        """Get merged settings from all scopes.

        Merge order (later overrides earlier):
        1. User settings
        2. Project settings
        3. Local settings

        Returns:
            Merged settings dictionary
        """
        merged: dict[str, Any] = {}

        for path in (self.user_settings_file, self.project_settings_file, self.local_settings_file):
            settings = self._read_settings(path)
            if settings:
                merged = self._deep_merge(merged, settings)

        return merged

    def _read_settings(self, path: Path) -> dict[str, Any] | None:
        """Read settings from YAML file.

        Args:
            path: Path to settings file

        Returns:
            Settings dict or None if file doesn't exist
        """
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                return data if data else {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return None

    def _write_settings(self, path: Path, settings: dict[str, Any]) -> None:
        """Write settings to YAML file.

        Args:
            path: Path to settings file
            settings: Settings dictionary
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, "w", encoding="utf-8") as f:
                yaml.dump(settings, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            logger.error(f"Failed to write settings to {path}: {e}")
            raise

    def _update_settings(self, path: Path, updates: dict[str, Any]) -> None:
        """Update settings file with new values (deep merge)."""
        existing = self._read_settings(path) or {}
        merged = self._deep_merge(existing, updates)
        self._write_settings(path, merged)

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries.

        Args:
            base: Base dictionary
            overlay: Overlay dictionary (takes precedence)

        Returns:
            Merged dictionary
        """
        result = base.copy()

        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
