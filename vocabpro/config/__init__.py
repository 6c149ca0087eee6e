"""Configuration module for VocabPro."""

from .settings import Config
from .languages import LANG_CONFIG, SUPPORTED_LANGUAGES, is_supported_language
from .config_manager import SettingsManager

__all__ = [
    'Config',
    'LANG_CONFIG',
    'SUPPORTED_LANGUAGES',
    'is_supported_language',
    'SettingsManager',
]
