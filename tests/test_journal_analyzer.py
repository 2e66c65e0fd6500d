"""Unit tests for journal analysis."""

import pytest

from coach_app.services.coach.journal_analyzer import (
    JournalAnalyzer,
    INSIGHTS,
    GENERAL_SUGGESTIONS,
    SHORT_ENTRY_SUGGESTION,
    DETAILED_ENTRY_SUGGESTION,
)
from coach_app.services.coach.types import Context, RecentProgress


@pytest.fixture
def analyzer():
    return JournalAnalyzer()


class TestSentiment:
    def test_positive(self, analyzer):
        result = analyzer.analyze("I feel proud and grateful today", context=Context())

        assert result.sentiment == "positive"
        assert result.positive_count == 2
        assert result.negative_count == 0
        assert result.insights == INSIGHTS["positive"]

    def test_negative(self, analyzer):
        result = analyzer.analyze("I am struggling and anxious", context=Context())

        assert result.sentiment == "negative"
        assert result.negative_count > result.positive_count
        assert result.insights == INSIGHTS["negative"]

    def test_tie_is_neutral(self, analyzer):
        result = analyzer.analyze("I felt happy in the morning but sad at night")

        assert result.positive_count == result.negative_count == 1
        assert result.sentiment == "neutral"
        assert result.insights == INSIGHTS["neutral"]

    def test_case_insensitive(self, analyzer):
        result = analyzer.analyze("GRATEFUL and CALM")
        assert result.positive_count == 2


class TestPatterns:
    def test_all_patterns(self, analyzer):
        result = analyzer.analyze("Day 12. Work was a trigger but my coping plan helped.")
        assert len(result.patterns) == 3
        assert result.patterns[0].startswith("Identified potential triggers")
        assert result.patterns[1].startswith("You're actively thinking about coping strategies")
        assert result.patterns[2].startswith("You're tracking your progress")

    def test_no_patterns(self, analyzer):
        assert analyzer.analyze("Quiet evening with a book.").patterns == []


class TestSuggestions:
    def test_short_entry(self, analyzer):
        result = analyzer.analyze("A short note about tonight.")
        assert result.suggestions[0] == SHORT_ENTRY_SUGGESTION
        assert result.suggestions[1:] == list(GENERAL_SUGGESTIONS)

    def test_detailed_entry(self, analyzer):
        entry = " ".join(["word"] * 50)
        result = analyzer.analyze(entry)
        assert result.word_count == 50
        assert result.suggestions[0] == DETAILED_ENTRY_SUGGESTION

    def test_threshold_is_configurable(self):
        result = JournalAnalyzer(detail_word_threshold=3).analyze("one two three")
        assert result.suggestions[0] == DETAILED_ENTRY_SUGGESTION


class TestMood:
    def test_explicit_mood_wins(self, analyzer):
        context = Context(recent_progress=RecentProgress(mood_average=2))
        assert analyzer.analyze("Some thoughts today", mood=8, context=context).mood == 8

    def test_mood_from_context(self, analyzer):
        context = Context(recent_progress=RecentProgress(mood_average=6.6))
        assert analyzer.analyze("Some thoughts today", context=context).mood == 7

    def test_default_mood(self, analyzer):
        assert analyzer.analyze("Some thoughts today").mood == 5


def test_to_dict_shape(analyzer):
    data = analyzer.analyze("I feel proud and grateful today", mood=7).to_dict()

    assert data["mood"] == 7
    assert data["sentiment"] == "positive"
    assert data["wordCount"] == 6
    assert data["analysis"] == {"positiveWords": 2, "negativeWords": 0}
