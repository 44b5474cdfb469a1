"""
Intent Classification Module

Classifies an inbound health query into one of three intents:
- emergency: helpline / urgent help requests
- symptom_check: the user is describing what they feel
- data_or_general: everything else (regional data or a general question)

Classification walks an ordered keyword table and the first keyword found in
the text decides the intent. Matching is case-insensitive substring
containment, so "help" also fires on "helpline" and "helpful".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple
import logging

from pipeline.vocabulary import INTENT_KEYWORDS

logger = logging.getLogger(__name__)


class Intent(str, Enum):
    """Health query intents."""
    EMERGENCY = "emergency"
    SYMPTOM_CHECK = "symptom_check"
    DATA_OR_GENERAL = "data_or_general"


@dataclass
class IntentResult:
    """Result of intent classification."""
    intent: Intent
    matched_keyword: Optional[str] = None


class HealthIntentClassifier:
    """
    Classifies health query intents using an ordered keyword table.

    The table is a list of (keyword, intent) pairs; earlier entries take
    priority over later ones regardless of where they occur in the text.
    """

    def __init__(self, keywords: Optional[Sequence[Tuple[str, str]]] = None):
        """
        Initialize the classifier.

        Args:
            keywords: Ordered (keyword, intent) pairs. Defaults to the
                vocabulary table.
        """
        table = INTENT_KEYWORDS if keywords is None else keywords
        self._keywords: List[Tuple[str, Intent]] = [
            (keyword.lower(), Intent(intent)) for keyword, intent in table
        ]

    def classify(self, text: str) -> IntentResult:
        """
        Classify the intent of a query.

        Args:
            text: Input text (any case)

        Returns:
            IntentResult with the winning intent and the keyword that fired
        """
        lowered = (text or "").lower()

        for keyword, intent in self._keywords:
            if keyword in lowered:
                logger.debug(f"Intent {intent.value} via keyword '{keyword}'")
                return IntentResult(intent=intent, matched_keyword=keyword)

        return IntentResult(intent=Intent.DATA_OR_GENERAL)


# Convenience function
def classify_intent(text: str) -> IntentResult:
    """Convenience function for intent classification."""
    classifier = HealthIntentClassifier()
    return classifier.classify(text)
