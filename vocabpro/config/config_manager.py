"""Persistent settings manager with JSON storage and environment fallback."""

import copy
import json
import os
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

# Load .env file if python-dotenv is available
try:
    from dotenv import load_dotenv
    _env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(_env_path)
except ImportError:
    pass


class SettingsManager:
    """
    Manages application settings with JSON persistence.

    Settings are loaded from a JSON file with fallback to environment variables.
    Changes are immediately persisted to disk.

    Usage:
        settings = SettingsManager()
        chapter_size = settings.get("CHAPTER_SIZE", 50)
        settings.set("API_DELAY", 1.0)
    """

    _instance: Optional["SettingsManager"] = None
    _lock: Lock = Lock()

    DEFAULT_SETTINGS_FILE: str = "settings.json"

    # Default values for all settings
    # NOTE: API keys should come from environment variables, not defaults!
    DEFAULTS: Dict[str, Any] = {
        # Import pipeline
        "CHAPTER_SIZE": 50,
        "API_DELAY": 0.6,
        "RETRY_BACKOFF": 3.0,
        "MAX_RETRIES": 3,
        "TIMEOUT": 30,
        "MAX_ENTRIES": 200_000,

        # Checkpoint slot
        "STORAGE_KEY": "smart_import_queue_v1",
    }

    def __new__(cls, settings_file: Optional[str] = None) -> "SettingsManager":
        """Singleton pattern to ensure only one instance exists."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._initialized = False
                    cls._instance = instance
        return cls._instance

    def __init__(self, settings_file: Optional[str] = None) -> None:
        """
        Initialize the settings manager.

        Args:
            settings_file: Path to the settings JSON file.
                          Defaults to 'settings.json' in current directory.
        """
        if getattr(self, "_initialized", False):
            return

        self._settings_file: Path = Path(settings_file or self.DEFAULT_SETTINGS_FILE)
        self._settings: Dict[str, Any] = {}
        self._file_lock: Lock = Lock()

        self._load_settings()
        self._initialized = True

    def _load_settings(self) -> None:
        """Load settings from JSON file with environment variable fallback."""
        self._settings = self.DEFAULTS.copy()

        if self._settings_file.exists():
            try:
                with open(self._settings_file, "r", encoding="utf-8") as f:
                    file_settings = json.load(f)
                    self._settings.update(file_settings)
            except (json.JSONDecodeError, IOError) as e:
                # Continue with defaults
                print(f"Warning: Could not load settings file: {e}")

        # Environment variables have the highest priority
        for key in self.DEFAULTS:
            env_value = os.environ.get(key)
            if env_value is not None:
                self._settings[key] = self._parse_env_value(env_value, key)

        self._save_settings()

    def _parse_env_value(self, value: str, key: str) -> Any:
        """
        Parse environment variable value to appropriate type.

        Args:
            value: The string value from environment
            key: The setting key (used to infer expected type)

        Returns:
            Parsed value in appropriate type
        """
        default = self.DEFAULTS.get(key)

        if isinstance(default, bool):
            return value.lower() in ("true", "1", "yes", "on")
        elif isinstance(default, int):
            try:
                return int(value)
            except ValueError:
                return default
        elif isinstance(default, float):
            try:
                return float(value)
            except ValueError:
                return default
        else:
            return value

    def _save_settings(self) -> None:
        """Save current settings to JSON file."""
        with self._file_lock:
            try:
                self._settings_file.parent.mkdir(parents=True, exist_ok=True)

                with open(self._settings_file, "w", encoding="utf-8") as f:
                    json.dump(self._settings, f, indent=2, ensure_ascii=False)
            except IOError as e:
                print(f"Warning: Could not save settings file: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.

        Mutable values (dict, list) are returned as deep copies.
        """
        value = self._settings.get(key, default)
        if isinstance(value, (dict, list)):
            return copy.deepcopy(value)
        return value

    def set(self, key: str, value: Any, persist: bool = True) -> None:
        """Set a setting value and optionally persist to disk."""
        self._settings[key] = value
        if persist:
            self._save_settings()

    def reset(self, key: Optional[str] = None) -> None:
        """
        Reset settings to defaults.

        Args:
            key: Specific key to reset. If None, resets all settings.
        """
        if key is not None:
            if key in self.DEFAULTS:
                self._settings[key] = self.DEFAULTS[key]
        else:
            self._settings = self.DEFAULTS.copy()

        self._save_settings()

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance. Useful for testing."""
        with cls._lock:
            cls._instance = None
