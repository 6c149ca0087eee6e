"""Per-word enrichment with pacing, timeout and retry."""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from ..config import Config
from ..models import EnrichedCard, EnrichmentResult, RawEntry
from ..utils.logger import setup_logger
from ..utils.parsing import TextParser
from ..utils.retry import is_transient_error, with_retry

logger = setup_logger(__name__)


class EnrichmentClient:
    """
    Turn one RawEntry into a cleaned EnrichedCard.

    Wraps any service exposing
    ``async translate_and_enrich(words, language) -> List[EnrichmentResult]``.
    Failures never escape: a word that cannot be enriched yields None and
    ``last_error`` holds the reason.
    """

    def __init__(
        self,
        service: Any,
        max_attempts: int = Config.MAX_RETRIES,
        backoff: float = Config.RETRY_BACKOFF,
        api_delay: float = Config.API_DELAY,
        timeout: float = Config.TIMEOUT,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        placeholder: str = Config.NOT_FOUND_PLACEHOLDER,
    ):
        self.service = service
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.api_delay = api_delay
        self.timeout = timeout
        self.sleep = sleep
        self.placeholder = placeholder
        self.last_error: Optional[str] = None

    async def _call(self, word: str, language: str) -> List[EnrichmentResult]:
        coro = self.service.translate_and_enrich([word], language)
        if self.timeout:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        return await coro

    @staticmethod
    def _pick(word: str, results: List[EnrichmentResult]) -> Optional[EnrichmentResult]:
        """Prefer the result for this exact word, else the first one."""
        if not results:
            return None
        key = TextParser.normalize_key(word)
        for result in results:
            if TextParser.normalize_key(result.word) == key:
                return result
        return results[0]

    async def enrich(
        self,
        entry: RawEntry,
        language: str,
        owner: str,
        batch_id: str,
        api_delay: Optional[float] = None,
    ) -> Optional[EnrichedCard]:
        """
        Enrich and clean a single entry.

        ``api_delay`` overrides the client's pacing delay for this call.

        Returns:
            The card, or None when retries are exhausted, the error is not
            transient, or the service returned nothing.
        """
        self.last_error = None
        word = TextParser.normalize_unicode(entry.front).strip()

        def _on_retry(attempt: int, error: BaseException) -> None:
            logger.warning(f"Retrying '{word}' after attempt {attempt}/{self.max_attempts}: {error}")

        await self.sleep(self.api_delay if api_delay is None else api_delay)

        try:
            results = await with_retry(
                lambda: self._call(word, language),
                max_attempts=self.max_attempts,
                is_retryable=is_transient_error,
                backoff_seconds=self.backoff,
                sleep=self.sleep,
                on_retry=_on_retry,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.last_error = str(e) or type(e).__name__
            logger.error(f"Enrichment failed for '{word}': {self.last_error}")
            return None

        result = self._pick(word, results or [])
        if result is None:
            self.last_error = "empty enrichment result"
            logger.warning(f"No enrichment data for '{word}'")
            return None

        return self.build_card(entry, result, language, owner, batch_id)

    def build_card(
        self,
        entry: RawEntry,
        result: EnrichmentResult,
        language: str,
        owner: str,
        batch_id: str,
    ) -> EnrichedCard:
        """Apply cleanup and the translation / IPA fallbacks."""
        definition = TextParser.clean_definition(result.definition or entry.definition)
        translation = (
            TextParser.strip_markup(result.translation)
            or TextParser.clean_definition(entry.definition)
            or self.placeholder
        )
        example = TextParser.strip_markup(result.example or entry.example)
        ipa = TextParser.strip_markup(result.ipa) or entry.ipa.strip()
        audio = (result.audio or "").strip() or None

        back_definition = "" if definition == translation else definition

        return EnrichedCard(
            owner=owner,
            front=TextParser.normalize_unicode(entry.front).strip(),
            back=TextParser.compose_back(translation, back_definition),
            batch_id=batch_id,
            language=language,
            ipa=ipa,
            definition=definition,
            example=example,
            audio=audio,
        )
