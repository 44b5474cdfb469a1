"""
Query Resolution Orchestrator

Turns one (English) query into exactly one reply by walking a fixed
fallback chain:

1. emergency intent      -> hotline for the mentioned region (or national)
2. symptom_check intent  -> AI symptom assessment
3. data_or_general       -> regional government data when both a region and
                            a condition are named and the dataset has them
4. anything left         -> general AI answer

AI failures degrade to a fixed apology, so the reply is never empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol
import logging

from ingestion.regional_dataset import RegionalDataset, RegionalDatasetBuilder
from pipeline.emergency import EmergencyResolver
from pipeline.entity_extractor import HealthEntityExtractor
from pipeline.intent_classifier import HealthIntentClassifier, Intent

logger = logging.getLogger(__name__)


APOLOGY_MESSAGE = "⚠️ Unable to answer. Please consult a doctor."

SYMPTOM_PROMPT = (
    "User reports symptoms: {query}. Based on Indian context, suggest possible diseases, "
    "severity, preventive measures, and whether immediate doctor consultation is needed."
)

GENERAL_PROMPT = (
    "Answer concisely in 4-5 lines: {query}\n"
    "Include preventive tips and advise consulting a doctor."
)


class CompletionClient(Protocol):
    async def generate(self, prompt: str) -> str: ...


class ReplySource(str, Enum):
    """Which stage of the chain produced the reply."""
    HOTLINE = "hotline"
    SYMPTOM_AI = "symptom_ai"
    REGIONAL_DATA = "regional_data"
    GENERAL_AI = "general_ai"
    APOLOGY = "apology"


@dataclass
class NormalizedQuery:
    text: str
    intent: Intent
    region: Optional[str] = None
    condition: Optional[str] = None


@dataclass
class Resolution:
    reply: str
    source: ReplySource
    query: NormalizedQuery


def build_symptom_prompt(query: str) -> str:
    return SYMPTOM_PROMPT.format(query=query)


def build_general_prompt(query: str) -> str:
    return GENERAL_PROMPT.format(query=query)


class QueryResolver:
    """
    Runs the fallback chain for a single query.

    The regional dataset can be passed to resolve() by the caller. When it is
    not, a fresh one is built, and only for queries that reach the data stage.
    """

    def __init__(
        self,
        ai_client: CompletionClient,
        dataset_builder: Optional[RegionalDatasetBuilder] = None,
        classifier: Optional[HealthIntentClassifier] = None,
        extractor: Optional[HealthEntityExtractor] = None,
        emergency: Optional[EmergencyResolver] = None,
    ):
        self.ai_client = ai_client
        self.dataset_builder = dataset_builder
        self.classifier = classifier or HealthIntentClassifier()
        self.extractor = extractor or HealthEntityExtractor()
        self.emergency = emergency or EmergencyResolver()

    def normalize(self, text: str) -> NormalizedQuery:
        lowered = (text or "").lower()
        entities = self.extractor.extract(lowered)
        return NormalizedQuery(
            text=lowered,
            intent=self.classifier.classify(lowered).intent,
            region=entities.region,
            condition=entities.condition,
        )

    async def _ask_ai(self, prompt: str, source: ReplySource, query: NormalizedQuery) -> Resolution:
        try:
            answer = await self.ai_client.generate(prompt)
        except Exception as e:
            logger.error(f"AI completion failed: {e}")
            return Resolution(reply=APOLOGY_MESSAGE, source=ReplySource.APOLOGY, query=query)

        if not answer or not answer.strip():
            logger.warning("AI completion returned an empty answer")
            return Resolution(reply=APOLOGY_MESSAGE, source=ReplySource.APOLOGY, query=query)
        return Resolution(reply=answer, source=source, query=query)

    async def _lookup_regional(
        self, query: NormalizedQuery, dataset: Optional[RegionalDataset]
    ) -> Optional[str]:
        if query.region is None or query.condition is None:
            return None
        if dataset is None:
            if self.dataset_builder is None:
                return None
            dataset = await self.dataset_builder.build()
        return dataset.get(query.region, query.condition)

    async def resolve(self, text: str, dataset: Optional[RegionalDataset] = None) -> Resolution:
        """
        Resolve a query to a single non-empty reply.

        Args:
            text: Query text, already in the pivot language
            dataset: Regional dataset for this cycle, if the caller built one

        Returns:
            Resolution with the reply and the stage that produced it
        """
        query = self.normalize(text)
        logger.info(
            f"Resolving query: intent={query.intent.value} region={query.region} condition={query.condition}"
        )

        if query.intent == Intent.EMERGENCY:
            return Resolution(
                reply=self.emergency.resolve(query.region),
                source=ReplySource.HOTLINE,
                query=query,
            )

        # Prompts embed the text as the user wrote it, not the lowercased copy
        if query.intent == Intent.SYMPTOM_CHECK:
            return await self._ask_ai(build_symptom_prompt(text), ReplySource.SYMPTOM_AI, query)

        message = await self._lookup_regional(query, dataset)
        if message:
            return Resolution(reply=message, source=ReplySource.REGIONAL_DATA, query=query)

        return await self._ask_ai(build_general_prompt(text), ReplySource.GENERAL_AI, query)
