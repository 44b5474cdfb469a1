"""
Health Entity Extractor

Tags a query with the region (Indian state / union territory) and the health
condition it mentions, using gazette-style lists.

Each list is scanned in order and the first entry contained in the text wins.
This is positional priority, not longest match: with the default condition
list "covid" is found before "covid-19", and "fever" before any more specific
fever name placed later in the list. Callers that need another priority pass
their own ordered lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import logging

from pipeline.vocabulary import CONDITIONS, REGIONS

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Result of entity extraction."""
    region: Optional[str] = None
    condition: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """True when both a region and a condition were found."""
        return self.region is not None and self.condition is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"region": self.region, "condition": self.condition}


class HealthEntityExtractor:
    """Extracts region and condition entities from free text."""

    def __init__(
        self,
        regions: Optional[Sequence[str]] = None,
        conditions: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the extractor.

        Args:
            regions: Ordered region gazette (lowercase). Defaults to REGIONS.
            conditions: Ordered condition gazette (lowercase). Defaults to CONDITIONS.
        """
        self.regions: List[str] = [r.lower() for r in (regions if regions is not None else REGIONS)]
        self.conditions: List[str] = [c.lower() for c in (conditions if conditions is not None else CONDITIONS)]

    @staticmethod
    def _first_match(text: str, gazette: List[str]) -> Optional[str]:
        for entry in gazette:
            if entry in text:
                return entry
        return None

    def extract_region(self, text: str) -> Optional[str]:
        return self._first_match((text or "").lower(), self.regions)

    def extract_condition(self, text: str) -> Optional[str]:
        return self._first_match((text or "").lower(), self.conditions)

    def extract(self, text: str) -> ExtractionResult:
        """
        Extract region and condition from text.

        Args:
            text: Input text (any case)

        Returns:
            ExtractionResult; either field may be None
        """
        result = ExtractionResult(
            region=self.extract_region(text),
            condition=self.extract_condition(text),
        )
        logger.debug(f"Extracted entities: {result.to_dict()}")
        return result
