"""
Prompt builder for the recovery coach.

Assembles the coach persona, the user's context snapshot and a
stage-specific template into prompt text. Everything here is pure: the same
(stage, context, extra) always produces byte-identical output, so prompts
can be asserted in tests and diffed when templates change.
"""

from typing import Optional, List, Dict, Any, Iterable

from coach_app.services.coach.types import (
    Context,
    STAGE_ASSESSMENT,
    STAGE_PLANNING,
    STAGE_CRISIS,
    STAGES,
)

# Template names
TEMPLATE_ASSESSMENT = "assessment"
TEMPLATE_PLANNING = "planning"
TEMPLATE_DAILY_CHECK_IN = "daily_check_in"
TEMPLATE_CRISIS = "crisis"
TEMPLATE_TRIGGER_ANALYSIS = "trigger_analysis"
TEMPLATE_ENCOURAGEMENT = "encouragement"

NOT_PROVIDED = "Not provided"
NONE_IDENTIFIED = "None identified"

COACH_NAME = "Melius"

PERSONA = """You are Melius, a professional AI recovery coach for the UNDO app. You are:

- Evidence-based and compassionate
- Direct but warm and supportive
- Focused on practical, actionable strategies
- Knowledgeable about addiction recovery science
- Committed to user privacy and safety
- Able to recognize crisis situations and escalate appropriately

Your coaching style should be:
- Professional yet approachable
- Non-judgmental and empowering
- Focused on progress, not perfection
- Safety-conscious with clear boundaries
- Grounded in CBT, mindfulness, and recovery best practices

Always prioritize user safety and encourage professional help when appropriate."""

CONTEXT_BLOCK = """CURRENT USER CONTEXT:
- Recovery Stage: {stage}
- Current Streak: {streak} days
- Recent Progress:
  * Mood Average: {mood}/10
  * Urge Average: {urge}/10
  * Habit Completion: {habits}%
- Recent Triggers: {triggers}
- Current Goals: {goals}
- Emotional State: {emotional_state}"""

RESPONSE_GUIDELINES = """RESPONSE GUIDELINES:
- Be warm, professional, and non-judgmental
- Provide specific, actionable advice
- Ask clarifying questions when helpful
- Include progress acknowledgment when appropriate
- Maintain appropriate boundaries
- Encourage professional help when needed
- Keep responses focused and relevant
- Use recovery-focused language
- Balance compassion with directness"""

CRISIS_ADDENDUM = """CRISIS RESPONSE:
- Provide immediate stabilization techniques
- Include crisis resources: call or text 988 (Suicide & Crisis Lifeline), call 911 if life is in danger
- Keep messages shorter and more direct
- Focus on safety above all else"""

CRISIS_PROTOCOL = """CRISIS PROTOCOL:
You are currently in crisis intervention mode. The user needs immediate support.

Provide:
1. Calming breathing exercises (step-by-step)
2. Grounding techniques (5-4-3-2-1 method)
3. Immediate distraction strategies
4. Emergency contact information
5. Professional help resources

Keep responses:
- Short and actionable
- Focused on immediate stabilization
- Non-judgmental and calming
- Including crisis hotlines when appropriate

If life-threatening risk is detected, provide immediate emergency numbers and encourage calling 911 or local emergency services."""

CRISIS_USER_PROMPT = """URGENT SITUATION:
- User is experiencing high distress (reported urgency: {urgency})
- Needs immediate coping strategies
- Time-sensitive intervention required

Respond immediately with 3-4 specific, actionable steps the user can take RIGHT NOW.
Include crisis hotline: 988 (Suicide & Crisis Lifeline)
Emergency: Call 911 if life-threatening"""

TEMPLATES: Dict[str, str] = {
    TEMPLATE_ASSESSMENT: """You are conducting an initial recovery assessment. The user has provided:
- Primary recovery goal: {primary_goal}
- Start date: {start_date}
- Previous attempts: {previous_attempts}

Your role is to understand their situation better and provide initial guidance. Ask thoughtful questions about:
1. Current challenges and triggers
2. Support system availability
3. Previous coping mechanisms
4. Recovery motivations
5. Daily routine and habits

Be warm, professional, and thorough. End with 2-3 specific suggestions they can try today.""",

    TEMPLATE_PLANNING: """You are creating a personalized recovery plan based on:
- Current goals: {goals}
- Current streak: {streak} days
- Recent mood average: {mood}/10
- Recent urges: {urge}/10

Create a structured plan with:
1. Clear, achievable short-term goals (first 7 days)
2. Medium-term objectives (30 days)
3. Daily habits and routines
4. Coping strategies for common triggers
5. Progress tracking methods

Make it actionable, specific, and tailored to their current recovery stage.""",

    TEMPLATE_DAILY_CHECK_IN: """Review today's check-in:
- Mood: {mood}/10
- Urge intensity: {urge}/10
- Triggers: {triggers}
- Activities completed: {activities}

Provide:
1. Acknowledgment and validation
2. Analysis of patterns
3. Personalized encouragement
4. Suggestions for tomorrow
5. Resources if needed

Be supportive and solution-focused.""",

    TEMPLATE_CRISIS: """CRISIS SITUATION:
- Urgent triggers identified
- High stress/intensity: {urgency}
- Time sensitive response needed

IMMEDIATE ACTIONS:
1. Grounding techniques (5-4-3-2-1 method)
2. Breathing exercises guidance
3. Distraction strategies
4. Emergency contacts/resources
5. Professional help recommendation

Respond immediately with clear, actionable steps. If life-threatening, provide crisis hotlines immediately.
Keep messages concise and focused on immediate stabilization.""",

    TEMPLATE_TRIGGER_ANALYSIS: """Analyze these recurring triggers: {triggers}

Provide:
1. Pattern identification
2. Root cause analysis
3. Specific prevention strategies
4. Alternative coping mechanisms
5. Progress tracking suggestions

Be analytical but supportive, focusing on empowerment and skill-building.""",

    TEMPLATE_ENCOURAGEMENT: """Progress to celebrate:
- Current streak: {streak} days
- Longest streak: {longest_streak} days
- Recent achievements: {milestones}

Provide:
1. Genuine recognition of effort
2. Strengths observed
3. Growth indicators
4. Motivation for continued progress
5. Next steps or challenges

Be encouraging, specific, and motivating.""",
}

# Conversation stage -> template appended to the system prompt
STAGE_TEMPLATES = {
    STAGE_ASSESSMENT: TEMPLATE_ASSESSMENT,
    STAGE_PLANNING: TEMPLATE_PLANNING,
    STAGE_CRISIS: TEMPLATE_CRISIS,
}


def _number(value: Any) -> str:
    """Render numbers without float noise: 7.0 -> '7', 6.456 -> '6.5'."""
    if value is None or value == "":
        return NOT_PROVIDED
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        rounded = round(float(value), 1)
        return str(int(rounded)) if rounded.is_integer() else str(rounded)
    return str(value)


def _text(value: Any) -> str:
    if value is None or value == "":
        return NOT_PROVIDED
    return str(value)


def _join(items: Optional[Iterable[Any]], sort: bool = False) -> str:
    values = [str(item) for item in (items or []) if str(item).strip()]
    if sort:
        values = sorted(set(values))
    return ", ".join(values) if values else NONE_IDENTIFIED


class PromptBuilder:
    """
    Builds stage prompts from fixed templates.

    Holds no state; a single instance is shared by every request.
    """

    def system_prompt(self, stage: str, context: Context) -> str:
        """Persona, context snapshot and guidelines, plus the crisis addendum."""
        progress = context.recent_progress
        parts = [
            PERSONA,
            CONTEXT_BLOCK.format(
                stage=stage,
                streak=_number(context.current_streak),
                mood=_number(progress.mood_average),
                urge=_number(progress.urge_average),
                habits=_number(progress.habit_completion),
                triggers=_join(context.recent_triggers, sort=True),
                goals=_join(context.current_goals),
                emotional_state=context.emotional_state,
            ),
            RESPONSE_GUIDELINES,
        ]
        if stage == STAGE_CRISIS:
            parts.append(CRISIS_ADDENDUM)
        return "\n\n".join(parts)

    def build(
        self,
        stage: str,
        context: Context,
        extra: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Build the system prompt for a conversation stage.

        Args:
            stage: assessment | planning | implementation | crisis
            context: User's context snapshot
            extra: Stage-specific values (goals, recoveryGoals, urgency, ...)

        Returns:
            Prompt text

        Raises:
            ValueError: Unknown stage
        """
        if stage not in STAGES:
            raise ValueError(f"Unknown conversation stage: {stage}")

        prompt = self.system_prompt(stage, context)
        template = STAGE_TEMPLATES.get(stage)
        if template:
            prompt = f"{prompt}\n\n{self.build_template(template, context, extra)}"
        return prompt

    def build_template(
        self,
        name: str,
        context: Context,
        extra: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Render a single named template.

        Raises:
            ValueError: Unknown template name
        """
        if name not in TEMPLATES:
            raise ValueError(f"Unknown prompt template: {name}")

        values = _TEMPLATE_VALUES[name](context, extra or {})
        return TEMPLATES[name].format(**values)

    def crisis_system_prompt(self) -> str:
        """System prompt for the dedicated crisis path."""
        return f"{PERSONA}\n\n{CRISIS_PROTOCOL}"

    def crisis_user_prompt(self, crisis_data: Optional[Dict[str, Any]] = None) -> str:
        """User turn for the dedicated crisis path."""
        urgency = (crisis_data or {}).get("urgency")
        return CRISIS_USER_PROMPT.format(urgency=_text(urgency))


def _assessment_values(context: Context, extra: Dict[str, Any]) -> Dict[str, str]:
    goals = extra.get("recoveryGoals") or {}
    return {
        "primary_goal": _text(goals.get("primaryGoal") or extra.get("primaryGoal")),
        "start_date": _text(goals.get("startDate") or extra.get("startDate")),
        "previous_attempts": _text(
            goals.get("previousAttempts") or extra.get("previousAttempts") or "None mentioned"
        ),
    }


def _planning_values(context: Context, extra: Dict[str, Any]) -> Dict[str, str]:
    goals: List[Any] = extra.get("goals") or context.current_goals
    return {
        "goals": _join(goals),
        "streak": _number(extra.get("currentStreak", context.current_streak)),
        "mood": _number(context.recent_progress.mood_average),
        "urge": _number(context.recent_progress.urge_average),
    }


def _daily_check_in_values(context: Context, extra: Dict[str, Any]) -> Dict[str, str]:
    mood = extra.get("mood") or {}
    urges = extra.get("urges") or {}
    activities = extra.get("activities") or {}
    completed = [name for name, done in activities.items() if done]
    return {
        "mood": _number(mood.get("rating") if isinstance(mood, dict) else mood),
        "urge": _number(urges.get("intensity")),
        "triggers": _join(urges.get("triggers")),
        "activities": ", ".join(completed) if completed else "None",
    }


def _crisis_values(context: Context, extra: Dict[str, Any]) -> Dict[str, str]:
    return {"urgency": _text(extra.get("urgency") or context.emotional_state)}


def _trigger_analysis_values(context: Context, extra: Dict[str, Any]) -> Dict[str, str]:
    triggers = extra.get("triggers")
    if triggers:
        return {"triggers": _join(triggers)}
    return {"triggers": _join(context.recent_triggers, sort=True)}


def _encouragement_values(context: Context, extra: Dict[str, Any]) -> Dict[str, str]:
    return {
        "streak": _number(extra.get("currentStreak", context.current_streak)),
        "longest_streak": _number(extra.get("longestStreak")),
        "milestones": _join(extra.get("recentMilestones")) if extra.get("recentMilestones") else "None mentioned",
    }


_TEMPLATE_VALUES = {
    TEMPLATE_ASSESSMENT: _assessment_values,
    TEMPLATE_PLANNING: _planning_values,
    TEMPLATE_DAILY_CHECK_IN: _daily_check_in_values,
    TEMPLATE_CRISIS: _crisis_values,
    TEMPLATE_TRIGGER_ANALYSIS: _trigger_analysis_values,
    TEMPLATE_ENCOURAGEMENT: _encouragement_values,
}
