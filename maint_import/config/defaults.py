from __future__ import annotations

"""Built-in matching tables.

Used for every table that config/import.yml leaves out. The loader copies
these into read-only structures; nothing should mutate them at runtime.
"""

COLUMN_ALIASES: dict[str, list[str]] = {
    "date": ["date", "request date", "reported date", "reported on"],
    "floor": ["floor", "floor name", "building floor"],
    "wing": ["wing", "side", "block"],
    "process": ["process", "process name", "client"],
    "location": ["location", "area", "spot"],
    "issue_description": ["issue description", "description", "issue", "problem", "complaint"],
}

FLOOR_SYNONYMS: dict[str, str] = {
    "gf": "ground floor",
    "g": "ground floor",
    "ground": "ground floor",
    "1st": "1st floor",
    "first": "1st floor",
    "first floor": "1st floor",
    "2nd": "2nd floor",
    "second": "2nd floor",
    "second floor": "2nd floor",
    "3rd": "3rd floor",
    "third": "3rd floor",
    "third floor": "3rd floor",
    "4th": "4th floor",
    "fourth": "4th floor",
    "fourth floor": "4th floor",
    "5th": "5th floor",
    "fifth": "5th floor",
    "fifth floor": "5th floor",
    "b1": "basement",
    "lower ground": "basement",
    "canteen": "cafeteria",
    "cafe": "cafeteria",
    "rooftop": "terrace",
}

PROCESS_SYNONYMS: dict[str, str] = {}

UNSET_VALUES: dict[str, list[str]] = {
    "process": ["na", "nil"],
}

# 順序が意味を持つ: 最初にヒットしたグループを採用
CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "electrical": ["wiring", "wire", "electrical", "switch", "board", "power"],
    "hvac": ["ac", "temperature", "cooling", "heating", "ventilation"],
    "plumbing": ["water", "tap", "leak", "drainage", "washroom", "toilet"],
    "cleaning": ["cleaning", "trash", "garbage", "dirty"],
    "safety": ["fire", "extinguisher", "emergency", "safety"],
}

URGENT_KEYWORDS: list[str] = ["urgent", "immediate", "emergency", "danger", "critical"]
HIGH_KEYWORDS: list[str] = [
    "broken",
    "not working",
    "damaged",
    "failed",
    "leak",
    "fire",
    "spark",
    "short circuit",
]

FALLBACK_CATEGORY = "Other"
MATCH_POLICY = "first"

BATCH_SIZE = 50
