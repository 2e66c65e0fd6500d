"""
Pydantic models for AI coach request/response validation.

Defines schemas for chat, crisis support, journal analysis, assessments,
guidance and conversation history.
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request body for sending a coaching message."""
    message: str = Field(..., min_length=1, max_length=2000)
    conversationId: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class CrisisRequest(BaseModel):
    """Request body for immediate crisis support."""
    crisisData: Dict[str, Any]
    urgency: Literal["low", "medium", "high", "emergency"]


class JournalRequest(BaseModel):
    """Request body for journal analysis."""
    entry: str = Field(..., min_length=10, max_length=5000)
    mood: Optional[int] = Field(None, ge=1, le=10)


class AssessmentRequest(BaseModel):
    """Start or continue a recovery assessment."""
    userContext: Dict[str, Any]
    stage: Literal["initial", "planning", "review"] = "initial"
    conversationId: Optional[str] = None


class GuidanceRequest(BaseModel):
    """Values interpolated into a guidance template."""
    data: Dict[str, Any] = Field(default_factory=dict)


class ConversationMessageResponse(BaseModel):
    """Message in conversation history."""
    id: str
    role: str
    content: str
    type: str = "text"
    timestamp: datetime
    metadata: Optional[Dict[str, Any]] = None


class ConversationResponse(BaseModel):
    """Conversation in API responses."""
    id: str
    userId: str
    sessionId: str
    messages: List[ConversationMessageResponse]
    context: Dict[str, Any]
    stage: str
    isCompleted: bool
    createdAt: datetime
    updatedAt: datetime


class ConversationSummaryResponse(BaseModel):
    """Conversation in list views, without message bodies."""
    id: str
    stage: str
    isCompleted: bool
    messageCount: int
    lastMessage: Optional[str] = None
    createdAt: datetime
    updatedAt: datetime
