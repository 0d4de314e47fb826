"""
Word translation via MyMemory or OpenAI
"""

import logging

import httpx
from openai import AsyncOpenAI

from .config import Settings, get_settings
from .core.models import TranslationResult
from .text_parser import google_translate_url
from .utils import log_execution_time

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {"de": "German", "bn": "Bengali", "en": "English"}


class Translator:
    """Translates single words; failures produce a result with a fallback link"""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        openai_client: AsyncOpenAI | None = None,
    ):
        settings = settings or get_settings()
        self.provider = settings.translation_provider.lower()
        self.source_language = settings.source_language
        self.target_language = settings.target_language
        self.mymemory_url = settings.mymemory_url
        self.model = settings.openai_model

        self.http_client = http_client or httpx.AsyncClient(timeout=settings.api_timeout)
        self.openai_client = openai_client
        if self.openai_client is None and self.provider == "openai":
            self.openai_client = AsyncOpenAI(
                api_key=settings.openai_api_key, timeout=settings.api_timeout
            )

    @log_execution_time
    async def translate(self, word: str) -> TranslationResult:
        """
        Translate a word from the source to the target language

        Args:
            word: Word to translate

        Returns:
            TranslationResult; `translation` is None when the lookup failed
        """
        word = (word or "").strip()
        fallback = google_translate_url(word, self.source_language, self.target_language)
        if not word:
            return TranslationResult(word=word, translation=None, fallback_url=fallback)

        try:
            if self.provider == "openai":
                translation = await self._translate_openai(word)
                source = "OpenAI"
            else:
                translation = await self._translate_mymemory(word)
                source = "MyMemory Translation API"
        except Exception as e:
            logger.error(f"Translation API error for '{word}': {e}")
            return TranslationResult(word=word, translation=None, fallback_url=fallback)

        if not translation:
            logger.warning(f"No translation data received for '{word}'")
            return TranslationResult(word=word, translation=None, fallback_url=fallback)

        return TranslationResult(
            word=word, translation=translation, fallback_url=fallback, source=source
        )

    async def _translate_mymemory(self, word: str) -> str | None:
        response = await self.http_client.get(
            self.mymemory_url,
            params={"q": word, "langpair": f"{self.source_language}|{self.target_language}"},
        )
        response.raise_for_status()
        data = response.json()
        response_data = data.get("responseData") or {}
        return response_data.get("translatedText")

    async def _translate_openai(self, word: str) -> str | None:
        source = LANGUAGE_NAMES.get(self.source_language, self.source_language)
        target = LANGUAGE_NAMES.get(self.target_language, self.target_language)

        response = await self.openai_client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "system",
                    "content": (
                        f"You translate single {source} words into {target}. "
                        "Answer with the translation only."
                    ),
                },
                {"role": "user", "content": word},
            ],
        )

        if not response.choices:
            logger.error("No response choices from OpenAI")
            return None

        content = response.choices[0].message.content
        return content.strip() if content else None

    async def close(self):
        await self.http_client.aclose()
