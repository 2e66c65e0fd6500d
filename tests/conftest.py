"""Shared test fixtures for the UNDO coach tests."""

import copy
import pytest
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from unittest.mock import AsyncMock, MagicMock

from common.ai import CompletionClient, CompletionOptions, CompletionResult
from common.utils.exceptions import NotFoundException
from coach_app.services.coach.conversation_store import (
    ConversationStore,
    GREETING,
    generate_conversation_id,
    generate_message_id,
)
from coach_app.services.coach.types import (
    Context,
    Conversation,
    Message,
    Principal,
    STAGE_ASSESSMENT,
)


class FakeCompletionClient(CompletionClient):
    """Completion client that replays canned replies or raises a fixed error."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.replies = list(replies or ["Thanks for sharing. How are you feeling right now?"])
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.healthy = True

    @property
    def model(self) -> str:
        return "test/model"

    async def complete(self, messages, options: Optional[CompletionOptions] = None) -> CompletionResult:
        self.calls.append({"messages": messages, "options": options})
        if self.error:
            raise self.error
        text = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return CompletionResult(text=text, finish_reason="stop", model=self.model)

    async def list_models(self) -> List[Dict[str, Any]]:
        if self.error:
            raise self.error
        return [{"id": self.model}]

    async def check_status(self) -> bool:
        return self.healthy


class InMemoryConversationStore(ConversationStore):
    """Dict-backed ConversationStore used by orchestrator tests."""

    def __init__(self, user_context: Optional[Context] = None):
        self.conversations: Dict[str, Conversation] = {}
        self.crisis_events: List[Dict[str, Any]] = []
        self.user_context = user_context or Context()
        self.fail_crisis_log = False

    async def create_conversation(self, user_id, context=None):
        now = datetime.now(timezone.utc)
        conversation = Conversation(
            id=generate_conversation_id(),
            user_id=user_id,
            session_id="session_test",
            messages=[Message(id=generate_message_id(), role="system", content=GREETING, timestamp=now)],
            context=copy.deepcopy(context) if context else Context(),
            stage=STAGE_ASSESSMENT,
            is_completed=False,
            created_at=now,
            updated_at=now,
        )
        self.conversations[conversation.id] = conversation
        return copy.deepcopy(conversation)

    async def get_conversation(self, conversation_id, user_id):
        conversation = self.conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            return None
        return copy.deepcopy(conversation)

    async def append_message(self, conversation_id, message):
        conversation = self.conversations[conversation_id]
        conversation.messages.append(message)
        conversation.updated_at = message.timestamp
        return message

    async def get_recent_messages(self, conversation_id, limit):
        return list(self.conversations[conversation_id].messages[-limit:])

    async def update_stage(self, conversation_id, stage):
        self.conversations[conversation_id].stage = stage

    async def update_context(self, conversation_id, context):
        self.conversations[conversation_id].context = copy.deepcopy(context)

    async def get_user_context(self, user_id):
        return copy.deepcopy(self.user_context)

    async def delete_conversation(self, conversation_id, user_id):
        conversation = self.conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            raise NotFoundException(message="Conversation not found", code="CONVERSATION_NOT_FOUND")
        del self.conversations[conversation_id]

    async def list_conversations(self, user_id, skip=0, limit=20):
        owned = [c for c in self.conversations.values() if c.user_id == user_id]
        owned.sort(key=lambda c: c.updated_at, reverse=True)
        return owned[skip:skip + limit]

    async def count_conversations(self, user_id):
        return sum(1 for c in self.conversations.values() if c.user_id == user_id)

    async def complete_conversation(self, conversation_id, user_id):
        conversation = self.conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            return False
        conversation.is_completed = True
        return True

    async def log_crisis_event(self, user_id, event):
        if self.fail_crisis_log:
            raise RuntimeError("crisis log unavailable")
        self.crisis_events.append({"userId": user_id, **event})

    async def get_conversation_stats(self, user_id):
        return {"totalConversations": await self.count_conversations(user_id)}


@pytest.fixture
def sample_user_id():
    return "user_abc123"


@pytest.fixture
def principal(sample_user_id):
    return Principal(user_id=sample_user_id)


@pytest.fixture
def other_principal():
    return Principal(user_id="user_other456")


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def make_client():
    """Factory for clients with specific replies or errors."""
    return FakeCompletionClient


@pytest.fixture
def memory_store():
    return InMemoryConversationStore()


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def sample_conversation_doc(sample_user_id):
    now = datetime.now(timezone.utc)
    return {
        "_id": "665f1c2e9b1e8a3d4c5b6a70",
        "conversationId": "conv_20260218120000_abc12345",
        "userId": sample_user_id,
        "sessionId": "session_abc",
        "messages": [
            {
                "id": "msg_1",
                "role": "system",
                "content": GREETING,
                "type": "text",
                "timestamp": now,
                "metadata": {},
            },
            {
                "id": "msg_2",
                "role": "user",
                "content": "I've made it 5 days but evenings are hard.",
                "type": "text",
                "timestamp": now,
                "metadata": {},
            },
        ],
        "context": Context(current_streak=5).to_dict(),
        "stage": "implementation",
        "isCompleted": False,
        "createdAt": now,
        "updatedAt": now,
    }
