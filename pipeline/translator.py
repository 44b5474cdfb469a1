"""
Translation Engine using Google Translate

Translates inbound queries to the pivot language (English) and replies back
to the user's language. The source language is never detected separately:
it is read from the metadata Google returns with each translation.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Union
import logging

from googletrans import Translator

import settings

logger = logging.getLogger(__name__)


@dataclass
class TranslationResult:
    """Result of a translation operation."""
    source_text: str
    translated_text: str
    source_lang: str
    target_lang: str


class GoogleTranslator:
    """
    Translation through the Google Translate web endpoint (googletrans).

    Each call is bounded by `timeout` seconds; errors propagate to the caller,
    which decides how to degrade.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize the translator.

        Args:
            timeout: Per-call timeout in seconds (defaults to settings)
        """
        self.timeout = timeout if timeout is not None else settings.get_translation_timeout()

    async def translate(self, text: str, target_lang: str) -> TranslationResult:
        """
        Translate text into target_lang, auto-detecting the source.

        Args:
            text: Text to translate
            target_lang: ISO code of the target language ("en", "hi", ...)

        Returns:
            TranslationResult whose source_lang is the detected language
        """
        if not text or not text.strip():
            return TranslationResult(
                source_text=text,
                translated_text=text,
                source_lang=target_lang,
                target_lang=target_lang,
            )

        async with Translator() as client:
            result = await asyncio.wait_for(
                client.translate(text, dest=target_lang),
                timeout=self.timeout,
            )

        return TranslationResult(
            source_text=text,
            translated_text=result.text,
            source_lang=(result.src or target_lang).lower(),
            target_lang=target_lang,
        )


class PassthroughTranslator:
    """
    Translator that returns text unchanged and reports it as already being in
    the target language. Used for local runs without network access.
    """

    async def translate(self, text: str, target_lang: str) -> TranslationResult:
        return TranslationResult(
            source_text=text,
            translated_text=text,
            source_lang=target_lang,
            target_lang=target_lang,
        )


def get_translator(
    use_passthrough: Optional[bool] = None, **kwargs
) -> Union[GoogleTranslator, PassthroughTranslator]:
    """
    Factory function to get a translator instance.

    Args:
        use_passthrough: If True, skip translation entirely. Defaults to
            the inverse of TRANSLATION_ENABLED.
        **kwargs: Arguments passed to GoogleTranslator

    Returns:
        Translator instance
    """
    if use_passthrough is None:
        use_passthrough = not settings.translation_enabled()
    if use_passthrough:
        logger.info("Translation disabled; using passthrough translator")
        return PassthroughTranslator()
    return GoogleTranslator(**kwargs)
