"""Global settings and configuration."""

import os
from dataclasses import dataclass
from pathlib import Path

# Load .env file if python-dotenv is available
try:
    from dotenv import load_dotenv
    # Load from project root
    _env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(_env_path)
except ImportError:
    pass  # python-dotenv not installed, use environment variables directly


DEFAULT_LANG = "en"


@dataclass
class Config:
    """Application-wide configuration."""

    DEFAULT_LANG: str = DEFAULT_LANG

    # Import pipeline
    CHAPTER_SIZE: int = 50          # words enriched before one sink insert
    API_DELAY: float = 0.6          # pacing between word-level calls (seconds)
    RETRY_BACKOFF: float = 3.0      # wait before retrying a transient failure
    MAX_RETRIES: int = 3
    TIMEOUT: int = 30               # per-call timeout (seconds)
    MAX_ENTRIES: int = 200_000
    STORAGE_KEY: str = "smart_import_queue_v1"
    NOT_FOUND_PLACEHOLDER: str = "not found"

    # AI provider (OpenAI-compatible chat completions)
    AI_PROVIDER: str = os.environ.get("AI_PROVIDER", "deepseek").lower()
    AI_MODEL: str = os.environ.get("AI_MODEL", "")
    AI_API_KEY: str = (
        os.environ.get("DEEPSEEK_API_KEY")
        or os.environ.get("OPENAI_API_KEY")
        or os.environ.get("GROQ_API_KEY")
        or ""
    )
    AI_BASE_URL: str = os.environ.get("AI_BASE_URL", "")
    AI_TEMPERATURE: float = float(os.environ.get("AI_TEMPERATURE", "1.1"))

    DICTIONARY_API_URL: str = "https://api.dictionaryapi.dev/api/v2/entries"

    # Persistence
    # "sqlite" keeps cards locally, "supabase" uses the hosted backend
    STORAGE_BACKEND: str = os.environ.get("STORAGE_BACKEND", "sqlite").lower()
    SUPABASE_URL: str = os.environ.get("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.environ.get("SUPABASE_ANON_KEY", "")
    SUPABASE_TABLE: str = "flashcards"
    # Cards are scoped by owner; the CLI uses this id
    OWNER_ID: str = os.environ.get("VOCABPRO_USER_ID", "local")

    # Cross-platform paths using pathlib
    # BASE_DIR is the project root (parent of vocabpro/)
    BASE_DIR: Path = Path(__file__).parent.parent.parent.resolve()

    CHECKPOINT_DIR: str = str(BASE_DIR / "data" / "checkpoint")
    DB_FILE: str = str(BASE_DIR / "data" / "vocabpro.db")
    OUTPUT_DIR: str = str(BASE_DIR / "data" / "output")
