"""Resumable smart import pipeline."""

from .checkpoint import CheckpointStore, JSONCheckpointStore, MemoryCheckpointStore
from .enrichment import EnrichmentClient
from .pdf_parser import DictionaryPDFParser, ParseResult
from .scheduler import ImportProgress, ImportResult, SmartImporter

__all__ = [
    'CheckpointStore',
    'JSONCheckpointStore',
    'MemoryCheckpointStore',
    'EnrichmentClient',
    'DictionaryPDFParser',
    'ParseResult',
    'ImportProgress',
    'ImportResult',
    'SmartImporter',
]
