"""Services layer for business logic separation."""

from .ai_service import AIService, AIProvider, AIConfig, APIError, create_ai_service
from .dictionary_service import DictionaryService, DictionaryResult
from .enrichment_service import EnrichmentService
from .repository import (
    BaseCardRepository,
    SQLiteCardRepository,
    SupabaseCardRepository,
    create_repository,
)
from .card_service import CardService

__all__ = [
    "AIService",
    "AIProvider",
    "AIConfig",
    "APIError",
    "create_ai_service",
    "DictionaryService",
    "DictionaryResult",
    "EnrichmentService",
    "BaseCardRepository",
    "SQLiteCardRepository",
    "SupabaseCardRepository",
    "create_repository",
    "CardService",
]
