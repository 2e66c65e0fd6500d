"""
UNDO coach services.

All service classes organized by feature.
"""

from coach_app.services.coach import CoachService, MongoConversationStore

__all__ = [
    "CoachService",
    "MongoConversationStore",
]
