"""Language-specific configurations."""

LANG_CONFIG = {
    "en": {
        "name": "English",
        "dictionary_code": "en",
        "translation_language": "Uzbek",
    },
    "es": {
        "name": "Spanish",
        "dictionary_code": None,  # dictionaryapi.dev only serves English
        "translation_language": "Uzbek",
    },
    "zh": {
        "name": "Chinese",
        "dictionary_code": None,
        "translation_language": "Uzbek",
    },
}

SUPPORTED_LANGUAGES = tuple(LANG_CONFIG.keys())


def is_supported_language(code: str) -> bool:
    """Check whether a language code is one of the supported card languages."""
    return code in LANG_CONFIG
