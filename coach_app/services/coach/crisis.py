"""
Fixed crisis-support content.

Attached to every crisis response regardless of what the model returns,
and used verbatim when the model cannot be reached.
"""

EMERGENCY_CONTACTS = [
    "988 - Suicide & Crisis Lifeline",
    "911 - Emergency Services",
    "Text HOME to 741741 - Crisis Text Line",
]

CRISIS_SUGGESTIONS = [
    "Call 988 for immediate support",
    "Use the 5-4-3-2-1 grounding technique",
    "Practice deep breathing: 4 seconds in, 7 hold, 8 out",
    "Remove yourself from triggering environment",
]

CRISIS_FOLLOW_UP_QUESTIONS = [
    "Are you in a safe place right now?",
    "Is there someone you can contact immediately?",
    "What has helped you in similar situations before?",
]

CRISIS_STRATEGIES = ["grounding", "breathing", "distraction", "social_support"]

GROUNDING_TECHNIQUE = {
    "name": "5-4-3-2-1 Grounding Technique",
    "steps": [
        "Name 5 things you can SEE around you",
        "Name 4 things you can FEEL or touch",
        "Name 3 things you can HEAR",
        "Name 2 things you can SMELL",
        "Name 1 thing you can TASTE",
    ],
    "instructions": "Take your time with each step. Breathe deeply between each one.",
}

BREATHING_EXERCISE = {
    "name": "4-7-8 Breathing Technique",
    "steps": [
        "Breathe in through your nose for 4 seconds",
        "Hold your breath for 7 seconds",
        "Exhale completely through your mouth for 8 seconds",
        "Repeat 3-4 times",
    ],
}

# Used when the model cannot be reached
STATIC_CRISIS_MESSAGE = (
    "I understand you're in crisis. Please call 988 immediately for 24/7 "
    "support, or dial 911 if you're in immediate danger. You deserve help "
    "and support is available."
)

STATIC_CRISIS_SUGGESTIONS = [
    "Call 988 - Suicide & Crisis Lifeline",
    "Call 911 for emergency",
    "Text HOME to 741741 for crisis text line",
]
