"""
Conversation persistence for the coach.

ConversationStore is the interface the orchestrator depends on;
MongoConversationStore implements it on Motor. Every lookup by conversation
id also filters on the owner, so a conversation owned by someone else is
indistinguishable from one that does not exist.

Example:
    store = MongoConversationStore(db)
    conversation = await store.create_conversation(user_id)
    await store.append_message(conversation.id, message)
"""

import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import NotFoundException
from coach_app.services.coach.types import (
    Context,
    Conversation,
    Message,
    RecentProgress,
    STAGE_ASSESSMENT,
)

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I'm Melius, your AI recovery coach. I'm here to support you on "
    "your recovery journey. How are you feeling today?"
)

# Check-ins aggregated into the user context
CONTEXT_CHECKIN_WINDOW = 7


def generate_conversation_id() -> str:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"conv_{timestamp}_{secrets.token_hex(4)}"


def generate_message_id() -> str:
    return f"msg_{secrets.token_hex(8)}"


def derive_emotional_state(mood_average: float, urge_average: float) -> str:
    """Map check-in averages to an emotional state."""
    if mood_average <= 3 or urge_average >= 8:
        return "struggling"
    if mood_average >= 7 and urge_average <= 3:
        return "improving"
    return "stable"


class ConversationStore(ABC):
    """Persistence operations the coach orchestrator relies on."""

    @abstractmethod
    async def create_conversation(
        self,
        user_id: str,
        context: Optional[Context] = None,
    ) -> Conversation:
        """Create a conversation in the assessment stage, seeded with a greeting."""
        pass

    @abstractmethod
    async def get_conversation(self, conversation_id: str, user_id: str) -> Optional[Conversation]:
        """Return the conversation, or None if absent or not owned by user_id."""
        pass

    @abstractmethod
    async def append_message(self, conversation_id: str, message: Message) -> Message:
        pass

    @abstractmethod
    async def get_recent_messages(self, conversation_id: str, limit: int) -> List[Message]:
        """Most recent `limit` messages, oldest first."""
        pass

    @abstractmethod
    async def update_stage(self, conversation_id: str, stage: str) -> None:
        pass

    @abstractmethod
    async def update_context(self, conversation_id: str, context: Context) -> None:
        pass

    @abstractmethod
    async def get_user_context(self, user_id: str) -> Context:
        """Aggregate recent check-ins and streak data into a Context."""
        pass

    @abstractmethod
    async def delete_conversation(self, conversation_id: str, user_id: str) -> None:
        """
        Delete a conversation.

        Raises:
            NotFoundException: Conversation absent or not owned by user_id
        """
        pass

    @abstractmethod
    async def list_conversations(self, user_id: str, skip: int = 0, limit: int = 20) -> List[Conversation]:
        pass

    @abstractmethod
    async def count_conversations(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def complete_conversation(self, conversation_id: str, user_id: str) -> bool:
        """Mark a conversation completed. Returns False if absent or not owned."""
        pass

    @abstractmethod
    async def log_crisis_event(self, user_id: str, event: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def get_conversation_stats(self, user_id: str) -> Dict[str, Any]:
        pass


class MongoConversationStore(ConversationStore):
    """
    Conversation store backed by MongoDB.

    Collections:
        coach_conversations: Conversations with embedded messages
        crisis_events: Append-only crisis log
        checkins, streaks: Read-only inputs for the user context
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize MongoConversationStore.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._conversations = db["coach_conversations"]
        self._crisis_events = db["crisis_events"]
        self._checkins = db["checkins"]
        self._streaks = db["streaks"]

    # =========================================================================
    # CONVERSATIONS
    # =========================================================================

    async def create_conversation(
        self,
        user_id: str,
        context: Optional[Context] = None,
    ) -> Conversation:
        now = datetime.now(timezone.utc)
        greeting = Message(
            id=generate_message_id(),
            role="system",
            content=GREETING,
            timestamp=now,
        )
        conversation = Conversation(
            id=generate_conversation_id(),
            user_id=user_id,
            session_id=f"session_{secrets.token_hex(6)}",
            messages=[greeting],
            context=context or Context(),
            stage=STAGE_ASSESSMENT,
            is_completed=False,
            created_at=now,
            updated_at=now,
        )

        doc = conversation.to_dict()
        doc["conversationId"] = doc.pop("id")
        await self._conversations.insert_one(doc)

        logger.info(f"Created coach conversation {conversation.id} for user {user_id}")
        return conversation

    async def get_conversation(self, conversation_id: str, user_id: str) -> Optional[Conversation]:
        doc = await self._conversations.find_one({
            "conversationId": conversation_id,
            "userId": user_id,
        })
        return self._to_conversation(doc) if doc else None

    async def append_message(self, conversation_id: str, message: Message) -> Message:
        await self._conversations.update_one(
            {"conversationId": conversation_id},
            {
                "$push": {"messages": message.to_dict()},
                "$set": {"updatedAt": datetime.now(timezone.utc)},
            },
        )
        return message

    async def get_recent_messages(self, conversation_id: str, limit: int) -> List[Message]:
        doc = await self._conversations.find_one(
            {"conversationId": conversation_id},
            {"messages": {"$slice": -limit}},
        )
        if not doc:
            return []
        return [Message.from_dict(m) for m in doc.get("messages", [])[-limit:]]

    async def update_stage(self, conversation_id: str, stage: str) -> None:
        await self._conversations.update_one(
            {"conversationId": conversation_id},
            {"$set": {"stage": stage, "updatedAt": datetime.now(timezone.utc)}},
        )
        logger.info(f"Conversation {conversation_id} moved to stage {stage}")

    async def update_context(self, conversation_id: str, context: Context) -> None:
        await self._conversations.update_one(
            {"conversationId": conversation_id},
            {"$set": {"context": context.to_dict(), "updatedAt": datetime.now(timezone.utc)}},
        )

    async def delete_conversation(self, conversation_id: str, user_id: str) -> None:
        result = await self._conversations.delete_one({
            "conversationId": conversation_id,
            "userId": user_id,
        })
        if result.deleted_count == 0:
            raise NotFoundException(message="Conversation not found", code="CONVERSATION_NOT_FOUND")
        logger.info(f"Deleted coach conversation {conversation_id} for user {user_id}")

    async def list_conversations(self, user_id: str, skip: int = 0, limit: int = 20) -> List[Conversation]:
        cursor = self._conversations.find({"userId": user_id})
        cursor = cursor.sort("updatedAt", -1)
        cursor = cursor.skip(skip)
        cursor = cursor.limit(limit)
        docs = await cursor.to_list(length=limit)
        return [self._to_conversation(d) for d in docs]

    async def count_conversations(self, user_id: str) -> int:
        return await self._conversations.count_documents({"userId": user_id})

    async def complete_conversation(self, conversation_id: str, user_id: str) -> bool:
        result = await self._conversations.update_one(
            {"conversationId": conversation_id, "userId": user_id},
            {"$set": {"isCompleted": True, "updatedAt": datetime.now(timezone.utc)}},
        )
        return result.matched_count > 0

    # =========================================================================
    # CRISIS LOG AND STATS
    # =========================================================================

    async def log_crisis_event(self, user_id: str, event: Dict[str, Any]) -> None:
        doc = {
            "userId": user_id,
            **event,
            "timestamp": event.get("timestamp") or datetime.now(timezone.utc),
        }
        await self._crisis_events.insert_one(doc)
        logger.warning(f"Crisis event logged for user {user_id}")

    async def get_conversation_stats(self, user_id: str) -> Dict[str, Any]:
        """
        Summarize a user's coaching activity.

        Returns:
            Dict with totalConversations, activeConversations, totalMessages,
            userMessages, crisisConversations, crisisEvents, lastActiveAt
        """
        cursor = self._conversations.find(
            {"userId": user_id},
            {"messages.role": 1, "stage": 1, "isCompleted": 1, "updatedAt": 1},
        )
        docs = await cursor.to_list(length=None)

        total_messages = 0
        user_messages = 0
        last_active = None
        for doc in docs:
            messages = doc.get("messages", [])
            total_messages += len(messages)
            user_messages += sum(1 for m in messages if m.get("role") == "user")
            updated = doc.get("updatedAt")
            if updated and (last_active is None or updated > last_active):
                last_active = updated

        crisis_events = await self._crisis_events.count_documents({"userId": user_id})

        return {
            "totalConversations": len(docs),
            "activeConversations": sum(1 for d in docs if not d.get("isCompleted")),
            "totalMessages": total_messages,
            "userMessages": user_messages,
            "crisisConversations": sum(1 for d in docs if d.get("stage") == "crisis"),
            "crisisEvents": crisis_events,
            "lastActiveAt": last_active.isoformat() if last_active else None,
        }

    # =========================================================================
    # USER CONTEXT
    # =========================================================================

    async def get_user_context(self, user_id: str) -> Context:
        cursor = self._checkins.find({"userId": user_id})
        cursor = cursor.sort("date", -1)
        cursor = cursor.limit(CONTEXT_CHECKIN_WINDOW)
        checkins = await cursor.to_list(length=CONTEXT_CHECKIN_WINDOW)

        streak = await self._streaks.find_one({"userId": user_id})
        current_streak = int(streak.get("currentStreak", 0)) if streak else 0

        if not checkins:
            return Context(current_streak=current_streak)

        moods = []
        urges = []
        triggers: List[str] = []
        activities_done = 0
        activities_total = 0
        for checkin in checkins:
            mood = checkin.get("mood") or {}
            urge = checkin.get("urges") or {}
            if mood.get("rating") is not None:
                moods.append(mood["rating"])
            if urge.get("intensity") is not None:
                urges.append(urge["intensity"])
            for trigger in urge.get("triggers") or []:
                if trigger not in triggers:
                    triggers.append(trigger)
            activities = checkin.get("activities") or {}
            activities_total += len(activities)
            activities_done += sum(1 for done in activities.values() if done)

        progress = RecentProgress(
            mood_average=round(sum(moods) / len(moods), 1) if moods else 5,
            urge_average=round(sum(urges) / len(urges), 1) if urges else 3,
            habit_completion=round(activities_done * 100 / activities_total) if activities_total else 0,
        )

        return Context(
            current_streak=current_streak,
            recent_progress=progress,
            recent_triggers=triggers,
            emotional_state=derive_emotional_state(progress.mood_average, progress.urge_average),
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _to_conversation(self, doc: Dict[str, Any]) -> Conversation:
        return Conversation(
            id=doc["conversationId"],
            user_id=doc["userId"],
            session_id=doc.get("sessionId", ""),
            messages=[Message.from_dict(m) for m in doc.get("messages", [])],
            context=Context.from_dict(doc.get("context")),
            stage=doc.get("stage", STAGE_ASSESSMENT),
            is_completed=doc.get("isCompleted", False),
            created_at=doc["createdAt"],
            updated_at=doc.get("updatedAt", doc["createdAt"]),
        )
