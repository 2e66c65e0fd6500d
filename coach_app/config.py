"""
UNDO coach application settings.

Extends the base settings with completion-provider and coaching configuration.
"""

from typing import Optional
from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Coach-specific settings."""

    # ==========================================================================
    # OpenRouter (completion provider)
    # ==========================================================================
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_MODEL: str = "openai/gpt-4o-mini"
    OPENROUTER_SITE_URL: str = "http://localhost:3000"
    OPENROUTER_SITE_NAME: str = "UNDO Recovery App"

    # Default generation parameters
    AI_TEMPERATURE: float = 0.7
    AI_MAX_TOKENS: int = 1000
    AI_TOP_P: float = 0.9
    AI_FREQUENCY_PENALTY: float = 0.1
    AI_PRESENCE_PENALTY: float = 0.1

    # Crisis generation parameters
    AI_CRISIS_TEMPERATURE: float = 0.3
    AI_CRISIS_MAX_TOKENS: int = 500

    # Timeouts (seconds)
    AI_REQUEST_TIMEOUT: float = 60.0
    AI_CRISIS_TIMEOUT: float = 20.0
    AI_STATUS_TIMEOUT: float = 5.0
    AI_MAX_RETRIES: int = 2

    # ==========================================================================
    # Coaching
    # ==========================================================================
    # Messages sent to the model with each chat turn
    COACH_HISTORY_WINDOW: int = 10

    # Journal entries at or above this word count count as detailed
    JOURNAL_DETAIL_WORD_THRESHOLD: int = 50

    def missing_settings(self) -> list:
        errors = super().missing_settings()
        if not self.OPENROUTER_API_KEY:
            errors.append("OPENROUTER_API_KEY is required for the AI coach")
        return errors


# Global settings instance
settings = Settings()
