"""
Response classifier for coach replies.

Turns a free-text model reply into structured fields using fixed
vocabularies and line/sentence patterns. The heuristics are lexical only:
crisis language outside URGENCY_KEYWORDS (other languages, euphemisms) is
not detected here and must be caught by human escalation paths.

Example:
    result = classify("- Try to breathe slowly\\nHow are you sleeping?", context)
    result.suggestions  # ["Try to breathe slowly"]
    result.urgency      # "low"
"""

import logging
import re
from typing import List, Optional

from coach_app.services.coach.types import (
    Classification,
    Context,
    URGENCY_EMERGENCY,
    URGENCY_HIGH,
    URGENCY_MEDIUM,
    URGENCY_LOW,
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5
MAX_FOLLOW_UP_QUESTIONS = 3

# Coping strategies, in the order they are reported
STRATEGY_KEYWORDS = (
    "breathe",
    "meditate",
    "exercise",
    "journal",
    "connect",
    "grounding",
    "distraction",
)

# Urgency tiers checked highest first; first match wins
URGENCY_KEYWORDS = (
    (URGENCY_EMERGENCY, ("crisis", "emergency", "urgent", "immediate", "danger", "suicide", "harm")),
    (URGENCY_HIGH, ("difficult", "struggle", "intense", "overwhelmed", "triggered")),
)

# Above this urge average the user is treated as at least medium urgency
URGE_AVERAGE_MEDIUM_THRESHOLD = 6

_LIST_MARKER = re.compile(r"^(?:[-*•]|\d+\.)\s+")
# Sentences end at . ! ? or a line break
_SENTENCE = re.compile(r"[^.!?\n]+[.!?]*")


def extract_suggestions(raw_text: str, limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Bulleted or numbered lines with the marker stripped, in source order."""
    suggestions = []
    for line in raw_text.splitlines():
        line = line.strip()
        if not _LIST_MARKER.match(line):
            continue
        item = _LIST_MARKER.sub("", line, count=1).strip()
        if item:
            suggestions.append(item)
        if len(suggestions) >= limit:
            break
    return suggestions


def extract_follow_up_questions(raw_text: str, limit: int = MAX_FOLLOW_UP_QUESTIONS) -> List[str]:
    """Sentences ending in or containing a question mark, trimmed."""
    questions = []
    for match in _SENTENCE.finditer(raw_text):
        sentence = match.group(0).strip()
        if "?" in sentence:
            questions.append(sentence)
        if len(questions) >= limit:
            break
    return questions


def extract_strategies(raw_text: str) -> List[str]:
    lowered = raw_text.lower()
    return [keyword for keyword in STRATEGY_KEYWORDS if keyword in lowered]


def determine_urgency(raw_text: str, context: Optional[Context] = None) -> str:
    """
    Classify urgency with fixed precedence emergency > high > medium > low.

    Args:
        raw_text: Model reply (or any text) to scan
        context: User context; emotional state and urge average can raise the tier

    Returns:
        One of URGENCY_LEVELS
    """
    lowered = raw_text.lower()
    emotional_state = context.emotional_state if context else None

    for level, keywords in URGENCY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            if level == URGENCY_EMERGENCY:
                logger.warning("Emergency keywords detected in coach reply")
            return level
        if level == URGENCY_HIGH and emotional_state == "crisis":
            return URGENCY_HIGH

    if emotional_state == "struggling":
        return URGENCY_MEDIUM
    if context and context.recent_progress.urge_average > URGE_AVERAGE_MEDIUM_THRESHOLD:
        return URGENCY_MEDIUM
    return URGENCY_LOW


def classify(raw_text: str, context: Optional[Context] = None) -> Classification:
    """Extract suggestions, follow-up questions, strategies and urgency."""
    raw_text = raw_text or ""
    return Classification(
        suggestions=extract_suggestions(raw_text),
        follow_up_questions=extract_follow_up_questions(raw_text),
        strategies=extract_strategies(raw_text),
        urgency=determine_urgency(raw_text, context),
    )
