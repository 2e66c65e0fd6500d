"""
Type definitions for the coaching system.

Contains the dataclasses shared by the store, prompt builder, classifier
and orchestrator. Stored documents and API payloads use camelCase keys;
to_dict/from_dict do the translation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any


# Conversation stages
STAGE_ASSESSMENT = "assessment"
STAGE_PLANNING = "planning"
STAGE_IMPLEMENTATION = "implementation"
STAGE_CRISIS = "crisis"
STAGES = (STAGE_ASSESSMENT, STAGE_PLANNING, STAGE_IMPLEMENTATION, STAGE_CRISIS)

# Urgency tiers, lowest first
URGENCY_LOW = "low"
URGENCY_MEDIUM = "medium"
URGENCY_HIGH = "high"
URGENCY_EMERGENCY = "emergency"
URGENCY_LEVELS = (URGENCY_LOW, URGENCY_MEDIUM, URGENCY_HIGH, URGENCY_EMERGENCY)

EMOTIONAL_STATES = ("stable", "struggling", "improving", "crisis")

MESSAGE_ROLES = ("user", "assistant", "system")
MESSAGE_TYPES = ("text", "voice", "exercise")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a coaching operation."""
    user_id: str


@dataclass
class RecentProgress:
    """Rolling averages from recent check-ins."""
    mood_average: float = 5
    urge_average: float = 3
    habit_completion: float = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "moodAverage": self.mood_average,
            "urgeAverage": self.urge_average,
            "habitCompletion": self.habit_completion,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RecentProgress":
        data = data or {}
        return cls(
            mood_average=data.get("moodAverage", 5),
            urge_average=data.get("urgeAverage", 3),
            habit_completion=data.get("habitCompletion", 0),
        )


@dataclass
class Context:
    """Recovery-progress snapshot used to personalize prompts."""
    current_streak: int = 0
    recent_progress: RecentProgress = field(default_factory=RecentProgress)
    recent_triggers: List[str] = field(default_factory=list)
    successful_strategies: List[str] = field(default_factory=list)
    current_goals: List[str] = field(default_factory=list)
    emotional_state: str = "stable"  # stable | struggling | improving | crisis

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentStreak": self.current_streak,
            "recentProgress": self.recent_progress.to_dict(),
            "recentTriggers": list(self.recent_triggers),
            "successfulStrategies": list(self.successful_strategies),
            "currentGoals": list(self.current_goals),
            "emotionalState": self.emotional_state,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Context":
        data = data or {}
        return cls(
            current_streak=data.get("currentStreak", 0),
            recent_progress=RecentProgress.from_dict(data.get("recentProgress")),
            recent_triggers=list(data.get("recentTriggers", [])),
            successful_strategies=list(data.get("successfulStrategies", [])),
            current_goals=list(data.get("currentGoals", [])),
            emotional_state=data.get("emotionalState", "stable"),
        )


@dataclass
class Message:
    """A single turn in a conversation."""
    id: str
    role: str  # user | assistant | system
    content: str
    timestamp: datetime
    type: str = "text"  # text | voice | exercise
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "type": self.type,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            id=data["id"],
            role=data["role"],
            content=data.get("content", ""),
            timestamp=data["timestamp"],
            type=data.get("type", "text"),
            metadata=data.get("metadata") or {},
        )


@dataclass
class Conversation:
    """One ongoing coaching thread."""
    id: str
    user_id: str
    session_id: str
    messages: List[Message]
    context: Context
    stage: str
    is_completed: bool
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "sessionId": self.session_id,
            "messages": [m.to_dict() for m in self.messages],
            "context": self.context.to_dict(),
            "stage": self.stage,
            "isCompleted": self.is_completed,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def to_summary(self) -> Dict[str, Any]:
        """Conversation without its message bodies, for list views."""
        last = self.messages[-1] if self.messages else None
        return {
            "id": self.id,
            "stage": self.stage,
            "isCompleted": self.is_completed,
            "messageCount": len(self.messages),
            "lastMessage": last.content[:100] if last else None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class Classification:
    """Structured fields extracted from a model reply."""
    suggestions: List[str]
    follow_up_questions: List[str]
    strategies: List[str]
    urgency: str


@dataclass
class CoachingResponse:
    """Result of one coaching turn."""
    message: str
    suggestions: List[str] = field(default_factory=list)
    follow_up_questions: List[str] = field(default_factory=list)
    strategies: List[str] = field(default_factory=list)
    urgency: str = URGENCY_LOW
    degraded: bool = False
    conversation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "message": self.message,
            "suggestions": list(self.suggestions),
            "followUpQuestions": list(self.follow_up_questions),
            "strategies": list(self.strategies),
            "urgency": self.urgency,
        }
        if self.conversation_id is not None:
            data = {"conversationId": self.conversation_id, **data}
        if self.degraded:
            data["degraded"] = True
        return data


@dataclass
class CrisisResponse(CoachingResponse):
    """Crisis-path response; always carries emergency resources."""
    emergency_contacts: List[str] = field(default_factory=list)
    grounding_technique: Dict[str, Any] = field(default_factory=dict)
    breathing_exercise: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["emergencyContacts"] = list(self.emergency_contacts)
        data["groundingTechnique"] = self.grounding_technique
        data["breathingExercise"] = self.breathing_exercise
        return data


@dataclass
class JournalAnalysis:
    """Lexical analysis of a journal entry."""
    insights: List[str]
    patterns: List[str]
    suggestions: List[str]
    mood: int
    sentiment: str  # positive | negative | neutral
    word_count: int
    positive_count: int
    negative_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "insights": list(self.insights),
            "patterns": list(self.patterns),
            "suggestions": list(self.suggestions),
            "mood": self.mood,
            "sentiment": self.sentiment,
            "wordCount": self.word_count,
            "analysis": {
                "positiveWords": self.positive_count,
                "negativeWords": self.negative_count,
            },
        }
