"""
Application settings management.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from enum import Enum, auto
from pathlib import Path
from typing import Any, Callable, Optional

from devcompare.core.diff.text_diff import CompareOptions


class OutputFormat(Enum):
    """Report format for command line output."""
    UNIFIED = auto()
    SIDE_BY_SIDE = auto()
    SUMMARY = auto()
    JSON = auto()

    @classmethod
    def from_string(cls, value: str) -> OutputFormat:
        """Create from a command line value such as 'side-by-side'."""
        try:
            return cls[value.strip().upper().replace('-', '_')]
        except (KeyError, AttributeError):
            return cls.UNIFIED


@dataclass
class ComparisonSettings:
    """Settings for text comparison."""
    ignore_whitespace: bool = False
    ignore_case: bool = False
    intraline: bool = True
    intraline_max_line_length: int = 1000
    context_lines: int = 3
    output_format: OutputFormat = OutputFormat.UNIFIED
    tab_size: int = 4

    # Resource ceilings
    max_comparable_size: int = 10 * 1024 * 1024
    max_lines: int = 200_000
    max_edit_distance: Optional[int] = 10_000

    # Scheduling
    debounce_ms: int = 300

    def to_options(self) -> CompareOptions:
        """Build the engine options for these settings."""
        return CompareOptions(
            case_sensitive=not self.ignore_case,
            ignore_whitespace=self.ignore_whitespace,
            max_comparable_size=self.max_comparable_size,
            max_lines=self.max_lines,
            max_edit_distance=self.max_edit_distance,
            intraline=self.intraline,
            intraline_max_line_length=self.intraline_max_line_length,
        )


@dataclass
class LoggingSettings:
    """Logging settings."""
    level: str = "WARNING"
    log_file: str = ""


@dataclass
class ApplicationSettings:
    """Main application settings container."""
    comparison: ComparisonSettings = field(default_factory=ComparisonSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    recent_comparisons: list[tuple[str, str]] = field(default_factory=list)
    recent_history_limit: int = 10

    def to_options(self) -> CompareOptions:
        return self.comparison.to_options()


class SettingsManager:
    """Manager for loading/saving application settings."""

    def __init__(self, settings_path: Optional[Path | str] = None):
        self.settings_path = Path(settings_path) if settings_path else self._get_default_path()
        self._settings: Optional[ApplicationSettings] = None
        self._observers: list[Callable[[ApplicationSettings], None]] = []

    @staticmethod
    def _get_default_path() -> Path:
        """Get the default settings file path."""
        if os.name == 'nt':
            # Windows
            app_data = os.environ.get('APPDATA', os.path.expanduser('~'))
            return Path(app_data) / 'DevCompare' / 'settings.json'
        else:
            # Linux/Mac
            config_home = os.environ.get('XDG_CONFIG_HOME',
                                         os.path.expanduser('~/.config'))
            return Path(config_home) / 'devcompare' / 'settings.json'

    @property
    def settings(self) -> ApplicationSettings:
        """Get current settings, loading from disk if needed."""
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def load(self) -> ApplicationSettings:
        """
        Load settings from disk.

        A missing file gives the defaults. An unreadable or corrupt file
        also gives the defaults, with a warning.
        """
        if not self.settings_path.exists():
            return ApplicationSettings()

        try:
            with open(self.settings_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("settings root must be an object")
            return self._from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            logging.warning(
                f"SettingsManager - Ignoring unreadable settings file {self.settings_path}: {e}"
            )
            return ApplicationSettings()

    def save(self, settings: Optional[ApplicationSettings] = None) -> bool:
        """Save settings to disk."""
        settings = settings or self._settings
        if settings is None:
            return False

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)

            data = self._to_dict(settings)

            with open(self.settings_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)

        except OSError as e:
            logging.error(f"SettingsManager - Failed to save settings to {self.settings_path}: {e}")
            return False

        self._settings = settings
        self._notify_observers()
        return True

    def reset(self) -> ApplicationSettings:
        """Reset to default settings."""
        self._settings = ApplicationSettings()
        self.save()
        return self._settings

    def add_observer(self, callback: Callable[[ApplicationSettings], None]) -> None:
        """Add a callback to be notified of settings changes."""
        self._observers.append(callback)

    def remove_observer(self, callback: Callable[[ApplicationSettings], None]) -> None:
        """Remove a settings change observer."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify_observers(self) -> None:
        for callback in list(self._observers):
            callback(self._settings)

    def add_recent_comparison(self, old_path: str, new_path: str) -> None:
        """Add a pair of paths to the recent comparisons list."""
        settings = self.settings
        pair = (old_path, new_path)

        recent = [item for item in settings.recent_comparisons if tuple(item) != pair]
        recent.insert(0, pair)
        settings.recent_comparisons = recent[:settings.recent_history_limit]

        self.save()

    def _to_dict(self, settings: ApplicationSettings) -> dict:
        """Convert settings to dictionary for JSON serialization."""
        def convert(obj: Any) -> Any:
            if isinstance(obj, Enum):
                return obj.name
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [convert(item) for item in obj]
            else:
                return obj

        return convert(asdict(settings))

    def _from_dict(self, data: dict) -> ApplicationSettings:
        """Convert dictionary back to settings objects."""
        defaults = ComparisonSettings()
        comparison_data = data.get('comparison', {})
        logging_data = data.get('logging', {})

        comparison = ComparisonSettings(
            ignore_whitespace=comparison_data.get('ignore_whitespace', defaults.ignore_whitespace),
            ignore_case=comparison_data.get('ignore_case', defaults.ignore_case),
            intraline=comparison_data.get('intraline', defaults.intraline),
            intraline_max_line_length=comparison_data.get(
                'intraline_max_line_length', defaults.intraline_max_line_length),
            context_lines=comparison_data.get('context_lines', defaults.context_lines),
            output_format=OutputFormat.from_string(comparison_data.get('output_format', 'UNIFIED')),
            tab_size=comparison_data.get('tab_size', defaults.tab_size),
            max_comparable_size=comparison_data.get('max_comparable_size', defaults.max_comparable_size),
            max_lines=comparison_data.get('max_lines', defaults.max_lines),
            max_edit_distance=comparison_data.get('max_edit_distance', defaults.max_edit_distance),
            debounce_ms=comparison_data.get('debounce_ms', defaults.debounce_ms),
        )

        log_settings = LoggingSettings(
            level=logging_data.get('level', 'WARNING'),
            log_file=logging_data.get('log_file', ''),
        )

        return ApplicationSettings(
            comparison=comparison,
            logging=log_settings,
            recent_comparisons=[tuple(pair) for pair in data.get('recent_comparisons', [])],
            recent_history_limit=data.get('recent_history_limit', 10),
        )
