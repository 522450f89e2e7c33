# lifeline/classifier.py
# ------------------------------------------------------------
# Keyword triage for incoming SOS messages.
#
# Tiers are evaluated in order; the first tier with any keyword
# contained in the (lower-cased) message wins. The table is plain
# data so it can be swapped from a JSON file without code changes.
# ------------------------------------------------------------

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from .models import Priority


@dataclass(frozen=True)
class KeywordTier:
    priority: Priority
    category: str
    keywords: Tuple[str, ...]


@dataclass(frozen=True)
class Classification:
    priority: Priority
    category: str


KEYWORD_TIERS: Tuple[KeywordTier, ...] = (
    KeywordTier(
        "Critical",
        "Major Injury",
        ("bleeding", "severe", "life", "unconscious", "stroke", "dying"),
    ),
    KeywordTier(
        "High",
        "Trapped/Rising Water",
        ("trapped", "water", "drowning", "stuck", "flood", "fire", "rising"),
    ),
    KeywordTier(
        "Moderate",
        "Medical Supplies Need",
        ("pain", "hurt", "medicine", "supplies", "medical", "injury"),
    ),
    KeywordTier(
        "Low",
        "Food/Water Depletion",
        ("food", "hungry", "thirsty", "starving"),
    ),
)

FALLBACK = Classification(priority="Low", category="General Assistance")


def classify(message: str, tiers: Sequence[KeywordTier] = KEYWORD_TIERS) -> Classification:
    """
    Map free text to (priority, category).

    Example:
        classify("I am trapped, water rising")
        -> Classification(priority="High", category="Trapped/Rising Water")
    """
    text = (message or "").lower()

    for tier in tiers:
        if any(k in text for k in tier.keywords):
            return Classification(priority=tier.priority, category=tier.category)

    return FALLBACK


def load_tiers(path: str) -> Tuple[KeywordTier, ...]:
    """
    Load a replacement keyword table.

    Expected JSON shape (ordered, highest precedence first):
        [{"priority": "Critical", "category": "...", "keywords": ["..."]}, ...]
    """
    raw: List[Dict[str, Any]] = json.loads(Path(path).read_text(encoding="utf-8"))

    tiers: List[KeywordTier] = []
    for entry in raw:
        if entry["priority"] not in ("Critical", "High", "Moderate", "Low"):
            raise ValueError(f"unknown priority in keyword table: {entry['priority']!r}")
        tiers.append(
            KeywordTier(
                priority=entry["priority"],
                category=str(entry["category"]),
                keywords=tuple(str(k).lower() for k in entry["keywords"]),
            )
        )
    return tuple(tiers)
