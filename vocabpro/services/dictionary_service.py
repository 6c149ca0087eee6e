"""Dictionary lookups (phonetics, audio, first definition) via dictionaryapi.dev."""

import asyncio
import urllib.parse
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import Config, LANG_CONFIG
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass
class DictionaryResult:
    """Phonetic data for one word."""
    word: str
    ipa: str = ""
    audio: str = ""
    definition: str = ""
    example: str = ""
    found: bool = False


class DictionaryService:
    """Look up words in the free dictionary API with a pooled aiohttp session."""

    PREFERRED_POS = ("noun", "verb")

    def __init__(self, base_url: Optional[str] = None, timeout: int = Config.TIMEOUT):
        self.base_url = base_url or Config.DICTIONARY_API_URL
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._session_lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create a shared aiohttp session (connection pooling)."""
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=self.timeout)
                )
            return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        async with self._session_lock:
            if self._session and not self._session.closed:
                await self._session.close()
                self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def lookup(self, word: str, language: str = "en") -> DictionaryResult:
        """
        Fetch phonetics, audio and a definition for a word.

        Never raises: any failure yields ``found=False``.
        """
        code = LANG_CONFIG.get(language, {}).get("dictionary_code")
        word = word.strip()
        if not code or not word:
            return DictionaryResult(word=word)

        url = f"{self.base_url}/{code}/{urllib.parse.quote(word)}"
        try:
            session = await self._get_session()
            async with session.get(url) as response:
                if response.status != 200:
                    return DictionaryResult(word=word)
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Dictionary lookup failed for {word!r}: {e}")
            return DictionaryResult(word=word)

        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return DictionaryResult(word=word)

        return self.parse_entry(word, data[0])

    @classmethod
    def parse_entry(cls, word: str, entry: Dict[str, Any]) -> DictionaryResult:
        """Pick the best IPA, audio (US first) and definition from an entry."""
        phonetics: List[Dict[str, Any]] = [p for p in entry.get("phonetics") or [] if isinstance(p, dict)]

        ipa = entry.get("phonetic") or ""
        if not ipa:
            ipa = next((p["text"] for p in phonetics if p.get("text")), "")

        audio = next((p["audio"] for p in phonetics if p.get("audio") and "-us.mp3" in p["audio"]), "")
        if not audio:
            audio = next((p["audio"] for p in phonetics if p.get("audio")), "")

        definition = ""
        example = ""
        meanings = [m for m in entry.get("meanings") or [] if isinstance(m, dict)]
        if meanings:
            preferred = next(
                (m for m in meanings if m.get("partOfSpeech") in cls.PREFERRED_POS),
                meanings[0],
            )
            definitions = preferred.get("definitions") or []
            if definitions and isinstance(definitions[0], dict):
                definition = definitions[0].get("definition") or ""
                example = definitions[0].get("example") or ""

        return DictionaryResult(
            word=entry.get("word") or word,
            ipa=ipa,
            audio=audio,
            definition=definition,
            example=example,
            found=True,
        )
