"""
FastAPI dependencies for the UNDO coach application.

Composition root: services are built once at startup by
init_coach_services() and handed to routers through the getters below.
"""

from typing import Annotated, Optional

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.ai import CompletionClient, CompletionOptions, OpenRouterClient
from common.auth import AuthProvider, JWTAuth, create_auth_dependency
from coach_app.config import Settings
from coach_app.services.coach.coach_service import CoachService
from coach_app.services.coach.conversation_store import ConversationStore, MongoConversationStore
from coach_app.services.coach.journal_analyzer import JournalAnalyzer
from coach_app.services.coach.prompt_builder import PromptBuilder
from coach_app.services.coach.types import Principal


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

_auth_provider: Optional[AuthProvider] = None
_completion_client: Optional[CompletionClient] = None
_conversation_store: Optional[ConversationStore] = None
_coach_service: Optional[CoachService] = None


# ─────────────────────────────────────────────────────────────────
# Initialization
# ─────────────────────────────────────────────────────────────────

def init_auth_services(settings: Settings) -> None:
    """Initialize JWT authentication."""
    global _auth_provider

    _auth_provider = JWTAuth(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        access_token_expire_minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def init_coach_services(
    db: AsyncIOMotorDatabase,
    settings: Settings,
    client: Optional[CompletionClient] = None,
) -> None:
    """
    Initialize AI coaching services.

    Args:
        db: Main application database
        settings: Application settings
        client: Completion client; built from the OpenRouter settings if omitted
    """
    global _completion_client, _conversation_store, _coach_service

    if client is None:
        client = OpenRouterClient(
            api_key=settings.OPENROUTER_API_KEY,
            model=settings.OPENROUTER_MODEL,
            base_url=settings.OPENROUTER_BASE_URL,
            site_url=settings.OPENROUTER_SITE_URL,
            site_name=settings.OPENROUTER_SITE_NAME,
            defaults=CompletionOptions(
                temperature=settings.AI_TEMPERATURE,
                max_tokens=settings.AI_MAX_TOKENS,
                top_p=settings.AI_TOP_P,
                frequency_penalty=settings.AI_FREQUENCY_PENALTY,
                presence_penalty=settings.AI_PRESENCE_PENALTY,
            ),
            timeout=settings.AI_REQUEST_TIMEOUT,
            status_timeout=settings.AI_STATUS_TIMEOUT,
            max_retries=settings.AI_MAX_RETRIES,
        )

    _completion_client = client
    _conversation_store = MongoConversationStore(db)
    _coach_service = CoachService(
        client=_completion_client,
        store=_conversation_store,
        prompt_builder=PromptBuilder(),
        journal_analyzer=JournalAnalyzer(
            detail_word_threshold=settings.JOURNAL_DETAIL_WORD_THRESHOLD,
        ),
        chat_options=CompletionOptions(timeout=settings.AI_REQUEST_TIMEOUT),
        crisis_options=CompletionOptions(
            temperature=settings.AI_CRISIS_TEMPERATURE,
            max_tokens=settings.AI_CRISIS_MAX_TOKENS,
            timeout=settings.AI_CRISIS_TIMEOUT,
        ),
        history_window=settings.COACH_HISTORY_WINDOW,
    )


def init_all_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """Initialize all services at application startup."""
    init_auth_services(settings)
    init_coach_services(db, settings)


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_auth_provider() -> AuthProvider:
    """Get auth provider instance."""
    if _auth_provider is None:
        raise RuntimeError("Auth services not initialized.")
    return _auth_provider


def get_completion_client() -> CompletionClient:
    """Get completion client instance."""
    if _completion_client is None:
        raise RuntimeError("AI services not initialized.")
    return _completion_client


def get_conversation_store() -> ConversationStore:
    """Get conversation store instance."""
    if _conversation_store is None:
        raise RuntimeError("AI services not initialized.")
    return _conversation_store


def get_coach_service() -> CoachService:
    """Get coach service instance."""
    if _coach_service is None:
        raise RuntimeError("AI services not initialized.")
    return _coach_service


# ─────────────────────────────────────────────────────────────────
# Auth
# ─────────────────────────────────────────────────────────────────

get_current_user_id = create_auth_dependency(lambda: get_auth_provider())


async def require_auth(
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> Principal:
    """Dependency that requires authentication."""
    return Principal(user_id=user_id)
