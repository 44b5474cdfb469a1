"""
Inbound message handling.

Wraps the resolver with the round-trip translation and the chunking the
messaging transport needs:

    inbound text -> English -> resolver -> user's language -> chunks

Both translation directions fail open. If the forward pass fails, the
original text is resolved as-is and the language is taken to be English, so
no back-translation is attempted. If the backward pass fails, the English
reply is sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple
import logging

import settings
from ingestion.regional_dataset import RegionalDataset
from pipeline.chunker import split_message
from pipeline.resolver import QueryResolver, Resolution
from pipeline.translator import TranslationResult

logger = logging.getLogger(__name__)


class TranslationClient(Protocol):
    async def translate(self, text: str, target_lang: str) -> TranslationResult: ...


@dataclass
class HandledMessage:
    """Outcome of handling one inbound message."""
    parts: List[str]
    reply: str
    detected_lang: str
    resolution: Resolution


class MessageHandler:
    def __init__(
        self,
        resolver: QueryResolver,
        translator: TranslationClient,
        chunk_limit: Optional[int] = None,
        pivot_lang: str = settings.PIVOT_LANGUAGE,
    ):
        self.resolver = resolver
        self.translator = translator
        self.chunk_limit = chunk_limit or settings.get_chunk_limit()
        self.pivot_lang = pivot_lang

    async def to_pivot(self, text: str) -> Tuple[str, str]:
        """Translate inbound text to the pivot language; returns (text, detected_lang)."""
        try:
            result = await self.translator.translate(text, self.pivot_lang)
        except Exception as e:
            logger.warning(f"Translation error: {e}")
            return text, self.pivot_lang
        return result.translated_text, result.source_lang or self.pivot_lang

    async def from_pivot(self, reply: str, detected_lang: str) -> str:
        if detected_lang == self.pivot_lang:
            return reply
        try:
            result = await self.translator.translate(reply, detected_lang)
        except Exception as e:
            logger.warning(f"Back translation error: {e}")
            return reply
        return result.translated_text or reply

    async def handle(self, text: str, dataset: Optional[RegionalDataset] = None) -> HandledMessage:
        """
        Produce the reply parts for one inbound message.

        Args:
            text: Message body as received
            dataset: Regional dataset to resolve against, if already built

        Returns:
            HandledMessage with reply parts in send order
        """
        pivot_text, detected_lang = await self.to_pivot(text)
        logger.info(f"Detected language: {detected_lang}")

        resolution = await self.resolver.resolve(pivot_text, dataset=dataset)
        reply = await self.from_pivot(resolution.reply, detected_lang)

        return HandledMessage(
            parts=split_message(reply, self.chunk_limit),
            reply=reply,
            detected_lang=detected_lang,
            resolution=resolution,
        )
