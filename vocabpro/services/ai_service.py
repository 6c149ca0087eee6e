"""
AI Service - LLM Integration for vocabulary enrichment.

Provides abstraction over OpenAI-compatible chat completion providers
(DeepSeek, OpenAI, Groq) for generating flashcard content:
- Uzbek translations
- Simple English definitions
- Example sentences
- Fallback IPA transcriptions
"""

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import Config, LANG_CONFIG
from ..errors import APIError
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


class AIProvider(Enum):
    """Supported AI providers."""
    DEEPSEEK = "deepseek"
    OPENAI = "openai"
    GROQ = "groq"  # Fast inference


DEFAULT_BASE_URLS = {
    AIProvider.DEEPSEEK: "https://api.deepseek.com",
    AIProvider.OPENAI: "https://api.openai.com/v1",
    AIProvider.GROQ: "https://api.groq.com/openai/v1",
}

DEFAULT_MODELS = {
    AIProvider.DEEPSEEK: "deepseek-chat",
    AIProvider.OPENAI: "gpt-4o-mini",
    AIProvider.GROQ: "llama-3.1-8b-instant",
}


@dataclass
class AIConfig:
    """Configuration for AI service."""
    provider: AIProvider = AIProvider.DEEPSEEK
    model: str = "deepseek-chat"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 1.1
    max_tokens: int = 2048
    timeout: int = 30


class ChatCompletionProvider:
    """OpenAI-compatible chat completions client (DeepSeek, OpenAI, Groq)."""

    def __init__(self, config: AIConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def complete(self, prompt: str, system_prompt: Optional[str] = None, json_mode: bool = False) -> str:
        """
        Generate a completion for the given prompt.

        Raises:
            APIError: on a non-200 response or a timeout
        """
        session = await self._get_session()

        base_url = self.config.base_url or DEFAULT_BASE_URLS[self.config.provider]
        url = f"{base_url}/chat/completions"

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "stream": False,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        name = self.config.provider.value
        try:
            async with session.post(url, headers=headers, json=payload) as response:
                if response.status == 200:
                    data = await response.json()
                    return data["choices"][0]["message"]["content"] or ""
                error = await response.text()
                raise APIError(f"{name} API error {response.status}: {error[:200]}", status=response.status)
        except asyncio.TimeoutError:
            raise APIError(f"{name} API timeout")
        except aiohttp.ClientError as e:
            raise APIError(f"{name} connection error: {e}")


class AIService:
    """
    High-level AI service for flashcard enrichment.

    Generates translation, definition, example and a fallback IPA for a list
    of words in one request.
    """

    SYSTEM_PROMPT = """You are a High-Performance Vocabulary Engine.
Output strictly valid JSON.

For each word, provide:
- "word": the word exactly as given.
- "translation": Accurate {translation_language} translation (Context: General/Academic).
- "definition": Simple {language} definition (A2/B1 level, max 12 words).
- "example": One clear example sentence in {language}.
- "fallback_ipa": An estimated IPA transcription (used only if the dictionary fails).

Return an object of the form {{"words": [...]}}. No HTML, no URLs, no labels."""

    def __init__(self, config: Optional[AIConfig] = None):
        """
        Initialize AI service.

        Args:
            config: AI configuration. If None, uses Config / environment variables.
        """
        self.config = config or self._config_from_env()
        self._provider: Optional[ChatCompletionProvider] = None

    @staticmethod
    def _config_from_env() -> AIConfig:
        """Create config from Config (which reads the environment)."""
        provider_map = {p.value: p for p in AIProvider}
        provider = provider_map.get(Config.AI_PROVIDER, AIProvider.DEEPSEEK)

        return AIConfig(
            provider=provider,
            model=Config.AI_MODEL or DEFAULT_MODELS[provider],
            api_key=Config.AI_API_KEY or None,
            base_url=Config.AI_BASE_URL or None,
            temperature=Config.AI_TEMPERATURE,
            timeout=Config.TIMEOUT,
        )

    def _get_provider(self) -> ChatCompletionProvider:
        """Get or create the provider."""
        if self._provider is None:
            self._provider = ChatCompletionProvider(self.config)
        return self._provider

    async def close(self) -> None:
        """Close the AI service and release resources."""
        if self._provider:
            await self._provider.close()
            self._provider = None

    @property
    def is_configured(self) -> bool:
        """Check if AI service is properly configured."""
        return bool(self.config.api_key)

    async def generate_context(self, words: List[str], language: str = "en") -> List[Dict[str, Any]]:
        """
        Generate translation, definition, example and fallback IPA for words.

        Args:
            words: Words to enrich
            language: Card language code

        Returns:
            One dict per word the model returned

        Raises:
            APIError: on HTTP failure or a response that is not JSON
        """
        if not words:
            return []

        lang = LANG_CONFIG.get(language, LANG_CONFIG["en"])
        system_prompt = self.SYSTEM_PROMPT.format(
            translation_language=lang["translation_language"],
            language=lang["name"],
        )
        prompt = f"Process these words: {json.dumps(words, ensure_ascii=False)}"

        content = await self._get_provider().complete(prompt, system_prompt, json_mode=True)
        return self.parse_results(content)

    @staticmethod
    def parse_results(content: str) -> List[Dict[str, Any]]:
        """
        Extract the per-word list from a model response.

        Accepts a bare array, an object with "words" or "items", or an object
        whose first list value holds the items.
        """
        try:
            parsed = json.loads(content)
        except (json.JSONDecodeError, TypeError) as e:
            raise APIError(f"Malformed AI response: {e}")

        if isinstance(parsed, list):
            results = parsed
        elif isinstance(parsed, dict):
            if isinstance(parsed.get("words"), list):
                results = parsed["words"]
            elif isinstance(parsed.get("items"), list):
                results = parsed["items"]
            else:
                results = next((v for v in parsed.values() if isinstance(v, list)), [])
        else:
            results = []

        return [item for item in results if isinstance(item, dict)]


# Convenience factory function
def create_ai_service(
    provider: str = "deepseek",
    model: Optional[str] = None,
    api_key: Optional[str] = None
) -> AIService:
    """
    Create an AI service with specified configuration.

    Args:
        provider: Provider name (deepseek, openai, groq)
        model: Model name (uses default if None)
        api_key: API key (uses environment if None)

    Returns:
        Configured AIService instance
    """
    provider_enum = {p.value: p for p in AIProvider}.get(provider.lower(), AIProvider.DEEPSEEK)

    config = AIConfig(
        provider=provider_enum,
        model=model or DEFAULT_MODELS[provider_enum],
        api_key=api_key or Config.AI_API_KEY or None,
        timeout=Config.TIMEOUT,
    )

    return AIService(config)
