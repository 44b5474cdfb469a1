"""Emergency hotline lookup."""

from __future__ import annotations

from typing import Dict, Optional

from pipeline.vocabulary import DEFAULT_HOTLINE_KEY, EMERGENCY_HOTLINES


class EmergencyResolver:
    def __init__(self, hotlines: Optional[Dict[str, str]] = None):
        self.hotlines = dict(EMERGENCY_HOTLINES if hotlines is None else hotlines)
        if DEFAULT_HOTLINE_KEY not in self.hotlines:
            raise ValueError(f"Hotline registry needs a '{DEFAULT_HOTLINE_KEY}' entry")

    def resolve(self, region: Optional[str]) -> str:
        """Return the region's hotline, or the national one."""
        if region:
            hotline = self.hotlines.get(region.strip().lower())
            if hotline:
                return hotline
        return self.hotlines[DEFAULT_HOTLINE_KEY]
