"""
Vocabulary Tables

Ordered keyword and gazette lists used by the intent classifier, the entity
extractor and the emergency resolver. Order matters everywhere: matchers walk
these lists front to back and stop at the first hit.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

# Indian states and union territories, lowercase.
REGIONS: List[str] = [
    "andhra pradesh", "arunachal pradesh", "assam", "bihar", "chhattisgarh",
    "goa", "gujarat", "haryana", "himachal pradesh", "jammu and kashmir",
    "jharkhand", "karnataka", "kerala", "madhya pradesh", "maharashtra",
    "manipur", "meghalaya", "mizoram", "nagaland", "odisha", "punjab",
    "rajasthan", "sikkim", "tamil nadu", "telangana", "tripura",
    "uttar pradesh", "uttarakhand", "west bengal", "andaman and nicobar islands",
    "chandigarh", "dadra and nagar haveli", "daman and diu", "delhi",
    "lakshadweep", "puducherry",
]

# "covid" sits before "covid-19" so both spellings resolve to the key the
# primary feed writes.
CONDITIONS: List[str] = [
    "covid", "covid-19", "dengue", "malaria", "fever",
    "headache", "flu", "cholera", "jaundice",
]

# (keyword, intent value) in priority order. Emergency before symptom.
INTENT_KEYWORDS: List[Tuple[str, str]] = [
    ("emergency", "emergency"),
    ("help", "emergency"),
    ("helpline", "emergency"),
    ("symptoms", "symptom_check"),
    ("i have", "symptom_check"),
]

DEFAULT_HOTLINE_KEY = "all"

EMERGENCY_HOTLINES: Dict[str, str] = {
    DEFAULT_HOTLINE_KEY: "☎️ National Health Helpline: 1800-180-1234",
    "telangana": "☎️ Telangana Health Helpline: 104",
    "maharashtra": "☎️ Maharashtra Health Helpline: 102",
}
