"""
FastAPI router for the AI coach.

Provides endpoints for chat, crisis support, journal analysis, assessments,
guidance and conversation history. All responses use the standard
{success, data | error, timestamp} envelope.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query

from common.ai import CompletionError, AuthError, RateLimitError, CompletionTimeoutError
from common.utils.exceptions import (
    APIException,
    BadGatewayException,
    GatewayTimeoutException,
    InternalServerException,
    RateLimitException,
)
from common.utils.responses import success_response, paginated_response
from coach_app.dependencies import require_auth, get_coach_service
from coach_app.services.coach.coach_service import CoachService
from coach_app.services.coach.types import Conversation, Principal
from coach_app.schemas.coach import (
    ChatRequest,
    CrisisRequest,
    JournalRequest,
    AssessmentRequest,
    GuidanceRequest,
    ConversationResponse,
    ConversationSummaryResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coach", tags=["coach"])

GuidanceKind = Literal["daily-check-in", "trigger-analysis", "encouragement"]


def completion_error_to_http(error: CompletionError) -> APIException:
    """Map a completion provider failure to an HTTP error."""
    if isinstance(error, RateLimitError):
        return RateLimitException(message="AI service is busy, please try again shortly", code=error.code)
    if isinstance(error, AuthError):
        return InternalServerException(message="AI service is misconfigured", code=error.code)
    if isinstance(error, CompletionTimeoutError):
        return GatewayTimeoutException(message="AI service timed out", code=error.code)
    return BadGatewayException(message="AI service unavailable", code=error.code)


def _stamped(data: dict) -> dict:
    return {**data, "timestamp": datetime.now(timezone.utc).isoformat()}


def _format_conversation(conversation: Conversation) -> dict:
    return ConversationResponse(**conversation.to_dict()).model_dump(mode="json")


@router.post("/chat")
async def chat(
    body: ChatRequest,
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Send a message and get a coaching response."""
    response = await coach_service.handle_message(
        principal,
        body.message,
        conversation_id=body.conversationId,
        metadata=body.metadata,
    )
    return success_response(_stamped(response.to_dict()))


@router.post("/crisis")
async def crisis(
    body: CrisisRequest,
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Immediate crisis support. Always returns emergency resources."""
    logger.warning(f"Crisis support requested by user {principal.user_id} (urgency={body.urgency})")
    response = await coach_service.handle_crisis(principal, body.crisisData, body.urgency)
    return success_response(_stamped(response.to_dict()))


@router.post("/analyze-journal")
async def analyze_journal(
    body: JournalRequest,
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Analyze a journal entry for insights and patterns."""
    analysis = await coach_service.analyze_journal_entry(principal, body.entry, mood=body.mood)
    return success_response(_stamped(analysis.to_dict()))


@router.post("/assessment")
async def assessment(
    body: AssessmentRequest,
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Start or continue a recovery assessment."""
    result = await coach_service.run_assessment(
        principal,
        body.userContext,
        stage=body.stage,
        conversation_id=body.conversationId,
    )
    return success_response(result)


@router.post("/guidance/{kind}")
async def guidance(
    kind: GuidanceKind,
    body: GuidanceRequest,
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Daily check-in review, trigger analysis or encouragement."""
    response = await coach_service.generate_guidance(principal, kind, body.data)
    return success_response(_stamped(response.to_dict()))


@router.get("/conversations")
async def list_conversations(
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
):
    """Get the caller's conversations, most recent first."""
    conversations, total = await coach_service.list_conversations(principal, page=page, limit=limit)
    items = [
        ConversationSummaryResponse(**c.to_summary()).model_dump(mode="json")
        for c in conversations
    ]
    return paginated_response(items, total=total, page=page, limit=limit)


@router.get("/conversations/{conversation_id}")
async def get_conversation(
    conversation_id: str,
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Get a specific conversation."""
    conversation = await coach_service.get_conversation(principal, conversation_id)
    return success_response(_format_conversation(conversation))


@router.post("/conversations/{conversation_id}/complete")
async def complete_conversation(
    conversation_id: str,
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Mark a conversation as completed."""
    await coach_service.close_conversation(principal, conversation_id)
    return success_response({"id": conversation_id, "isCompleted": True})


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(
    conversation_id: str,
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Delete a conversation."""
    await coach_service.delete_conversation(principal, conversation_id)
    return success_response(message="Conversation deleted")


@router.get("/stats")
async def get_stats(
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Get the caller's coaching statistics."""
    stats = await coach_service.get_stats(principal)
    return success_response(stats)


@router.get("/status")
async def get_status(
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """AI provider health."""
    return success_response(await coach_service.get_status())


@router.get("/models")
async def list_models(
    principal: Annotated[Principal, Depends(require_auth)],
    coach_service: Annotated[CoachService, Depends(get_coach_service)],
):
    """Models available from the AI provider."""
    try:
        models = await coach_service.list_models()
    except CompletionError as e:
        raise completion_error_to_http(e)
    return success_response({"models": models})
