"""VocabPro - resumable dictionary import for flashcards"""

__version__ = "1.0.0"
__author__ = "VocabPro Team"

from .config import Config, LANG_CONFIG
from .errors import (
    VocabImportError,
    ParseError,
    CheckpointError,
    PersistenceError,
    DuplicateCardError,
    ImportInProgressError,
    APIError,
)
from .models import RawEntry, EnrichedCard, ImportQueue
from .importer import (
    SmartImporter,
    EnrichmentClient,
    DictionaryPDFParser,
    JSONCheckpointStore,
    MemoryCheckpointStore,
)

__all__ = [
    'Config',
    'LANG_CONFIG',
    'VocabImportError',
    'ParseError',
    'CheckpointError',
    'PersistenceError',
    'DuplicateCardError',
    'ImportInProgressError',
    'APIError',
    'RawEntry',
    'EnrichedCard',
    'ImportQueue',
    'SmartImporter',
    'EnrichmentClient',
    'DictionaryPDFParser',
    'JSONCheckpointStore',
    'MemoryCheckpointStore',
]
