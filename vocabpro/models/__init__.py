"""Data models for VocabPro."""

from .card import RawEntry, EnrichmentResult, EnrichedCard
from .queue import ImportQueue

__all__ = [
    'RawEntry',
    'EnrichmentResult',
    'EnrichedCard',
    'ImportQueue',
]
