"""
UNDO coach API schemas.

Pydantic models for request/response validation.
"""

from coach_app.schemas.coach import (
    ChatRequest,
    CrisisRequest,
    JournalRequest,
    AssessmentRequest,
    GuidanceRequest,
    ConversationMessageResponse,
    ConversationResponse,
    ConversationSummaryResponse,
)

__all__ = [
    "ChatRequest",
    "CrisisRequest",
    "JournalRequest",
    "AssessmentRequest",
    "GuidanceRequest",
    "ConversationMessageResponse",
    "ConversationResponse",
    "ConversationSummaryResponse",
]
