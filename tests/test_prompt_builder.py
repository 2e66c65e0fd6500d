"""Unit tests for the coach prompt builder."""

import pytest

from coach_app.services.coach.prompt_builder import (
    PromptBuilder,
    PERSONA,
    CRISIS_ADDENDUM,
    TEMPLATE_DAILY_CHECK_IN,
    TEMPLATE_TRIGGER_ANALYSIS,
    TEMPLATE_ENCOURAGEMENT,
)
from coach_app.services.coach.types import Context, RecentProgress


@pytest.fixture
def builder():
    return PromptBuilder()


@pytest.fixture
def context():
    return Context(
        current_streak=5,
        recent_progress=RecentProgress(mood_average=6.5, urge_average=4.0, habit_completion=80),
        recent_triggers=["stress", "boredom"],
        current_goals=["complete 30 days", "develop coping strategies"],
        emotional_state="stable",
    )


class TestSystemPrompt:
    def test_includes_persona_and_context(self, builder, context):
        prompt = builder.system_prompt("implementation", context)

        assert prompt.startswith(PERSONA)
        assert "- Recovery Stage: implementation" in prompt
        assert "- Current Streak: 5 days" in prompt
        assert "* Mood Average: 6.5/10" in prompt
        assert "* Urge Average: 4/10" in prompt
        assert "* Habit Completion: 80%" in prompt
        assert "- Emotional State: stable" in prompt

    def test_triggers_sorted(self, builder, context):
        prompt = builder.system_prompt("implementation", context)
        assert "- Recent Triggers: boredom, stress" in prompt

    def test_empty_triggers(self, builder):
        prompt = builder.system_prompt("implementation", Context())
        assert "- Recent Triggers: None identified" in prompt

    def test_crisis_addendum_only_in_crisis(self, builder, context):
        assert CRISIS_ADDENDUM not in builder.system_prompt("implementation", context)

        crisis_prompt = builder.system_prompt("crisis", context)
        assert CRISIS_ADDENDUM in crisis_prompt
        assert "988" in crisis_prompt
        assert "911" in crisis_prompt


class TestBuild:
    @pytest.mark.parametrize("stage", ["assessment", "planning", "implementation", "crisis"])
    def test_deterministic(self, builder, context, stage):
        extra = {"goals": ["sleep better"], "urgency": "high"}
        first = builder.build(stage, context, extra)
        second = builder.build(stage, context, dict(extra))
        assert first == second

    def test_trigger_order_does_not_change_output(self, builder, context):
        reordered = Context(
            current_streak=context.current_streak,
            recent_progress=context.recent_progress,
            recent_triggers=list(reversed(context.recent_triggers)),
            current_goals=context.current_goals,
        )
        assert builder.build("implementation", context) == builder.build("implementation", reordered)

    def test_unknown_stage_rejected(self, builder, context):
        with pytest.raises(ValueError):
            builder.build("celebration", context)

    def test_assessment_interpolates_goals(self, builder, context):
        prompt = builder.build("assessment", context, {
            "recoveryGoals": {"primaryGoal": "quit drinking", "startDate": "2026-01-01"},
        })

        assert "- Primary recovery goal: quit drinking" in prompt
        assert "- Start date: 2026-01-01" in prompt
        assert "- Previous attempts: None mentioned" in prompt

    def test_assessment_missing_values(self, builder, context):
        prompt = builder.build("assessment", context)
        assert "- Primary recovery goal: Not provided" in prompt

    def test_planning_uses_context_goals(self, builder, context):
        prompt = builder.build("planning", context)
        assert "- Current goals: complete 30 days, develop coping strategies" in prompt

    def test_planning_extra_goals_win(self, builder, context):
        prompt = builder.build("planning", context, {"goals": ["run a 5k"]})
        assert "- Current goals: run a 5k" in prompt

    def test_crisis_stage_includes_immediate_actions(self, builder, context):
        prompt = builder.build("crisis", context, {"urgency": "emergency"})
        assert "IMMEDIATE ACTIONS:" in prompt
        assert "- High stress/intensity: emergency" in prompt

    def test_implementation_has_no_stage_template(self, builder, context):
        assert builder.build("implementation", context) == builder.system_prompt("implementation", context)


class TestTemplates:
    def test_daily_check_in(self, builder, context):
        text = builder.build_template(TEMPLATE_DAILY_CHECK_IN, context, {
            "mood": {"rating": 7},
            "urges": {"intensity": 3, "triggers": ["work"]},
            "activities": {"meditation": True, "exercise": False, "journaling": True},
        })

        assert "- Mood: 7/10" in text
        assert "- Urge intensity: 3/10" in text
        assert "- Triggers: work" in text
        assert "- Activities completed: meditation, journaling" in text

    def test_trigger_analysis_defaults_to_context(self, builder, context):
        text = builder.build_template(TEMPLATE_TRIGGER_ANALYSIS, context)
        assert "Analyze these recurring triggers: boredom, stress" in text

    def test_encouragement(self, builder, context):
        text = builder.build_template(TEMPLATE_ENCOURAGEMENT, context, {
            "longestStreak": 12,
            "recentMilestones": ["first week"],
        })

        assert "- Current streak: 5 days" in text
        assert "- Longest streak: 12 days" in text
        assert "- Recent achievements: first week" in text

    def test_unknown_template(self, builder, context):
        with pytest.raises(ValueError):
            builder.build_template("poetry", context)


class TestCrisisPrompts:
    def test_crisis_system_prompt(self, builder):
        prompt = builder.crisis_system_prompt()
        assert prompt.startswith(PERSONA)
        assert "CRISIS PROTOCOL:" in prompt

    def test_crisis_user_prompt(self, builder):
        prompt = builder.crisis_user_prompt({"urgency": "high"})
        assert "reported urgency: high" in prompt
        assert "988 (Suicide & Crisis Lifeline)" in prompt
        assert "Call 911 if life-threatening" in prompt
