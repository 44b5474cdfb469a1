"""
Query Pipeline Package
Multilingual health query resolution: intent, entities, fallback chain,
translation round-trip and chunking.
"""

from pipeline.intent_classifier import HealthIntentClassifier, Intent, IntentResult
from pipeline.entity_extractor import HealthEntityExtractor, ExtractionResult
from pipeline.emergency import EmergencyResolver
from pipeline.chunker import split_message
from pipeline.translator import GoogleTranslator, PassthroughTranslator, TranslationResult, get_translator
from pipeline.ai_client import CompletionError, GeminiClient
from pipeline.resolver import APOLOGY_MESSAGE, NormalizedQuery, QueryResolver, ReplySource, Resolution
from pipeline.message_handler import HandledMessage, MessageHandler

__all__ = [
    # Intent Classification
    "HealthIntentClassifier",
    "Intent",
    "IntentResult",
    # Entity Extraction
    "HealthEntityExtractor",
    "ExtractionResult",
    # Emergency hotlines
    "EmergencyResolver",
    # Chunking
    "split_message",
    # Translation
    "GoogleTranslator",
    "PassthroughTranslator",
    "TranslationResult",
    "get_translator",
    # AI completion
    "CompletionError",
    "GeminiClient",
    # Resolution
    "APOLOGY_MESSAGE",
    "NormalizedQuery",
    "QueryResolver",
    "ReplySource",
    "Resolution",
    # Message handling
    "HandledMessage",
    "MessageHandler",
]
