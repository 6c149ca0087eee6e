"""
Enrichment Service - hybrid dictionary + AI word enrichment.

Runs the dictionary lookups and the AI request concurrently and merges them:
dictionary phonetics and audio win, the AI supplies translation, definition,
example and a fallback IPA.
"""

import asyncio
from typing import List, Optional

from ..models import EnrichmentResult
from ..utils.logger import setup_logger
from .ai_service import AIService
from .dictionary_service import DictionaryResult, DictionaryService

logger = setup_logger(__name__)


class EnrichmentService:
    """
    Translate and enrich words for flashcards.

    Usage:
        service = EnrichmentService()
        results = await service.translate_and_enrich(["apple"], "en")
        await service.close()
    """

    def __init__(
        self,
        ai_service: Optional[AIService] = None,
        dictionary: Optional[DictionaryService] = None,
    ):
        self.ai_service = ai_service or AIService()
        self.dictionary = dictionary or DictionaryService()

    async def close(self) -> None:
        """Release HTTP sessions."""
        await self.ai_service.close()
        await self.dictionary.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def translate_and_enrich(self, words: List[str], language: str) -> List[EnrichmentResult]:
        """
        Enrich a list of words.

        Args:
            words: Words to enrich
            language: Card language code

        Returns:
            One result per word the AI returned, in AI order

        Raises:
            APIError: if the AI request fails (dictionary failures degrade silently)
        """
        words = [w.strip() for w in words if w and w.strip()]
        if not words:
            return []

        dictionary_task = asyncio.gather(*(self.dictionary.lookup(w, language) for w in words))
        ai_task = self.ai_service.generate_context(words, language)

        try:
            dict_results, ai_results = await asyncio.gather(dictionary_task, ai_task)
        except Exception:
            # Do not leave the lookups running after the AI failure
            dictionary_task.cancel()
            raise

        return self.merge(dict_results, ai_results)

    @staticmethod
    def merge(dict_results: List[DictionaryResult], ai_results: List[dict]) -> List[EnrichmentResult]:
        """Combine dictionary and AI data, keyed by lowercase word."""
        by_word = {d.word.lower(): d for d in dict_results}

        merged: List[EnrichmentResult] = []
        for item in ai_results:
            ai = EnrichmentResult.from_dict(item)
            found = by_word.get(ai.word.lower())

            if found is not None and found.found:
                merged.append(EnrichmentResult(
                    word=ai.word,
                    translation=ai.translation,
                    definition=ai.definition or found.definition,
                    example=ai.example or found.example,
                    ipa=found.ipa or ai.ipa,
                    audio=found.audio,
                ))
            else:
                merged.append(ai)

        return merged
