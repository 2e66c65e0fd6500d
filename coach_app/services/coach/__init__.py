"""AI coaching services."""

from coach_app.services.coach.types import (
    Principal,
    Context,
    RecentProgress,
    Message,
    Conversation,
    Classification,
    CoachingResponse,
    CrisisResponse,
    JournalAnalysis,
)
from coach_app.services.coach.prompt_builder import PromptBuilder
from coach_app.services.coach.response_classifier import classify
from coach_app.services.coach.journal_analyzer import JournalAnalyzer
from coach_app.services.coach.conversation_store import ConversationStore, MongoConversationStore
from coach_app.services.coach.coach_service import CoachService

__all__ = [
    "Principal",
    "Context",
    "RecentProgress",
    "Message",
    "Conversation",
    "Classification",
    "CoachingResponse",
    "CrisisResponse",
    "JournalAnalysis",
    "PromptBuilder",
    "classify",
    "JournalAnalyzer",
    "ConversationStore",
    "MongoConversationStore",
    "CoachService",
]
