"""
Journal entry analysis.

Counts fixed positive/negative vocabularies to derive a sentiment, then
emits canned insights, pattern notes and suggestions. Independent of any
conversation state.
"""

from typing import Optional

from coach_app.services.coach.types import Context, JournalAnalysis

POSITIVE_WORDS = (
    "happy", "good", "great", "excellent", "proud", "accomplished", "success",
    "progress", "grateful", "peaceful", "calm", "relaxed", "confident",
    "hopeful", "motivated", "strong", "recovery", "freedom", "empowered",
    "supported", "connected", "balanced", "focused",
)

NEGATIVE_WORDS = (
    "struggle", "difficult", "hard", "bad", "sad", "angry", "frustrated",
    "tempted", "urges", "anxious", "depressed", "lonely", "isolated",
    "ashamed", "guilty", "hopeless", "overwhelmed", "stressed", "tired",
    "exhausted", "weak", "failure", "mistake", "relapse", "triggered",
)

SENTIMENT_POSITIVE = "positive"
SENTIMENT_NEGATIVE = "negative"
SENTIMENT_NEUTRAL = "neutral"

INSIGHTS = {
    SENTIMENT_POSITIVE: [
        "Your journal entry shows positive reflection and growth mindset.",
        "You're recognizing your strengths and progress in recovery.",
    ],
    SENTIMENT_NEGATIVE: [
        "It sounds like you're facing challenges, but you're reaching out which is brave.",
        "Acknowledging difficult emotions is an important step in recovery.",
    ],
    SENTIMENT_NEUTRAL: [
        "Your journal entry shows self-awareness and reflection.",
    ],
}

# (keywords, pattern note); a note is added when any keyword appears
PATTERNS = (
    (("trigger",), "Identified potential triggers - this is valuable insight for your recovery."),
    (("strategy", "coping"), "You're actively thinking about coping strategies - excellent for recovery."),
    (("progress", "day"), "You're tracking your progress and time in recovery - this builds awareness."),
)

SHORT_ENTRY_SUGGESTION = "Consider writing more details to explore your thoughts and feelings more deeply."
DETAILED_ENTRY_SUGGESTION = "Great job with detailed journaling! This will help with pattern recognition."

GENERAL_SUGGESTIONS = (
    "Continue daily journaling to track your emotional patterns.",
    "Note any triggers and the strategies that helped you cope.",
    "Celebrate small victories along your recovery journey.",
)

DEFAULT_MOOD = 5


class JournalAnalyzer:
    """
    Lexical journal analyzer.

    Args:
        detail_word_threshold: Entries with at least this many words get the
            "detailed" suggestion instead of the "write more" one
    """

    def __init__(self, detail_word_threshold: int = 50):
        self.detail_word_threshold = detail_word_threshold

    def analyze(
        self,
        entry: str,
        mood: Optional[int] = None,
        context: Optional[Context] = None,
    ) -> JournalAnalysis:
        """
        Analyze a journal entry.

        Args:
            entry: Journal text
            mood: Self-reported mood (1-10), if given
            context: User context; its mood average is used when mood is absent

        Returns:
            JournalAnalysis
        """
        lowered = entry.lower()
        positive_count = sum(1 for word in POSITIVE_WORDS if word in lowered)
        negative_count = sum(1 for word in NEGATIVE_WORDS if word in lowered)

        if positive_count > negative_count:
            sentiment = SENTIMENT_POSITIVE
        elif negative_count > positive_count:
            sentiment = SENTIMENT_NEGATIVE
        else:
            sentiment = SENTIMENT_NEUTRAL

        patterns = [
            note for keywords, note in PATTERNS
            if any(keyword in lowered for keyword in keywords)
        ]

        word_count = len(entry.split())
        suggestions = [
            DETAILED_ENTRY_SUGGESTION if word_count >= self.detail_word_threshold
            else SHORT_ENTRY_SUGGESTION
        ]
        suggestions.extend(GENERAL_SUGGESTIONS)

        return JournalAnalysis(
            insights=list(INSIGHTS[sentiment]),
            patterns=patterns,
            suggestions=suggestions,
            mood=self._resolve_mood(mood, context),
            sentiment=sentiment,
            word_count=word_count,
            positive_count=positive_count,
            negative_count=negative_count,
        )

    @staticmethod
    def _resolve_mood(mood: Optional[int], context: Optional[Context]) -> int:
        if mood is not None:
            return mood
        if context is not None:
            return int(round(context.recent_progress.mood_average))
        return DEFAULT_MOOD
