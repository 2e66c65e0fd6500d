"""
Main coaching service.

Orchestrates chat turns, crisis support, journal analysis, assessments and
guidance on top of a completion client and a conversation store.

Completion failures never reach the caller from the chat, crisis or
guidance paths: they are logged and replaced with static, safe content.
Store failures propagate.
"""

import asyncio
import copy
import logging
import re
import weakref
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple

from common.ai import CompletionClient, CompletionError, CompletionOptions
from common.utils.exceptions import BadRequestException, NotFoundException
from coach_app.services.coach import crisis
from coach_app.services.coach.conversation_store import ConversationStore, generate_message_id
from coach_app.services.coach.journal_analyzer import JournalAnalyzer
from coach_app.services.coach.prompt_builder import (
    PromptBuilder,
    TEMPLATE_DAILY_CHECK_IN,
    TEMPLATE_TRIGGER_ANALYSIS,
    TEMPLATE_ENCOURAGEMENT,
)
from coach_app.services.coach.response_classifier import classify
from coach_app.services.coach.types import (
    Classification,
    CoachingResponse,
    Context,
    Conversation,
    CrisisResponse,
    JournalAnalysis,
    Message,
    Principal,
    STAGE_ASSESSMENT,
    STAGE_PLANNING,
    STAGE_IMPLEMENTATION,
    STAGE_CRISIS,
    URGENCY_EMERGENCY,
    URGENCY_HIGH,
)

logger = logging.getLogger(__name__)

# Sent when the model cannot be reached during a chat turn. Worded so the
# classifier does not escalate on the fallback text itself.
FALLBACK_MESSAGE = (
    "I'm having trouble responding right now, but I'm still here with you. "
    "Try to breathe slowly and notice the ground under your feet. If you "
    "need to talk to someone right now, call or text 988 any time, day or night."
)

FALLBACK_SUGGESTIONS = [
    "Take five slow breaths, in for 4 seconds and out for 6",
    "Reach out to someone you trust",
    "Call or text 988 if you need to talk to someone now",
]

ASSESSMENT_OPTIONS = CompletionOptions(temperature=0.5, max_tokens=800)

ASSESSMENT_OPENER = "I'm ready to begin my recovery assessment."
PLAN_REQUEST = "Based on my assessment, please create a personalized recovery plan."

FALLBACK_ASSESSMENT_QUESTIONS = [
    "What led you to start your recovery journey today?",
    "What are your biggest challenges right now?",
    "What support systems do you have available?",
    "What strategies have helped you in the past?",
    "What does success look like for you?",
]

FALLBACK_PLAN = (
    "Let's start with a simple plan for the next 7 days:\n"
    "- Check in with yourself every morning and evening\n"
    "- Pick one coping strategy to practice daily, like slow breathing or a short walk\n"
    "- Write down any triggers you notice and what helped\n"
    "- Tell one person you trust about your goal\n"
    "What feels like the most realistic first step for you?"
)

MAX_ASSESSMENT_QUESTIONS = 5
MIN_QUESTION_LENGTH = 10

# Guidance kinds exposed over HTTP -> prompt template
GUIDANCE_TEMPLATES = {
    "daily-check-in": TEMPLATE_DAILY_CHECK_IN,
    "trigger-analysis": TEMPLATE_TRIGGER_ANALYSIS,
    "encouragement": TEMPLATE_ENCOURAGEMENT,
}

GUIDANCE_FALLBACKS = {
    TEMPLATE_DAILY_CHECK_IN: (
        "Thank you for checking in today. Showing up for yourself is progress. "
        "Notice one thing that went well and one thing you'd like to try tomorrow."
    ),
    TEMPLATE_TRIGGER_ANALYSIS: (
        "Noticing your triggers is a real skill. For each one, write down when it "
        "shows up and one thing you could do instead. Patterns get easier to spot over time."
    ),
    TEMPLATE_ENCOURAGEMENT: (
        "Every day you keep going counts. Take a moment to recognize the effort "
        "behind your progress so far."
    ),
}

_LIST_NUMBER = re.compile(r"^\d+\.?\s*")


def extract_questions(text: str, limit: int = MAX_ASSESSMENT_QUESTIONS) -> List[str]:
    """Question lines from a reply, with list numbering removed."""
    questions = []
    for line in text.splitlines():
        if "?" not in line:
            continue
        question = _LIST_NUMBER.sub("", line.strip()).strip()
        if len(question) > MIN_QUESTION_LENGTH:
            questions.append(question)
    return questions[:limit]


class CoachService:
    """
    Main service for AI coaching.

    Built once at startup and shared by all requests. The only mutable
    state is the per-conversation lock registry.
    """

    def __init__(
        self,
        client: CompletionClient,
        store: ConversationStore,
        prompt_builder: Optional[PromptBuilder] = None,
        journal_analyzer: Optional[JournalAnalyzer] = None,
        chat_options: Optional[CompletionOptions] = None,
        crisis_options: Optional[CompletionOptions] = None,
        history_window: int = 10,
    ):
        """
        Initialize CoachService.

        Args:
            client: Completion client
            store: Conversation persistence
            prompt_builder: Prompt templates
            journal_analyzer: Journal entry analyzer
            chat_options: Generation parameters for chat and guidance
            crisis_options: Generation parameters for the crisis path
            history_window: Messages sent to the model per chat turn
        """
        self._client = client
        self._store = store
        self._prompts = prompt_builder or PromptBuilder()
        self._journal = journal_analyzer or JournalAnalyzer()
        self._chat_options = chat_options or CompletionOptions()
        self._crisis_options = crisis_options or CompletionOptions(
            temperature=0.3,
            max_tokens=500,
            timeout=20.0,
        )
        self._history_window = history_window
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    # =========================================================================
    # CHAT
    # =========================================================================

    async def handle_message(
        self,
        principal: Principal,
        text: str,
        conversation_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> CoachingResponse:
        """
        Run one coaching turn.

        Args:
            principal: Caller
            text: User's message
            conversation_id: Existing conversation or None to start one
            metadata: Stored with the user message

        Returns:
            CoachingResponse carrying the conversation id

        Raises:
            NotFoundException: conversation_id does not belong to the caller
        """
        if conversation_id is None:
            context = await self._store.get_user_context(principal.user_id)
            conversation = await self._store.create_conversation(principal.user_id, context)
            conversation_id = conversation.id

        async with self._lock_for(conversation_id):
            conversation = await self._require_conversation(principal, conversation_id)
            return await self._exchange(conversation, text, metadata)

    async def _exchange(
        self,
        conversation: Conversation,
        text: str,
        metadata: Optional[Dict[str, Any]],
    ) -> CoachingResponse:
        user_message = Message(
            id=generate_message_id(),
            role="user",
            content=text,
            timestamp=datetime.now(timezone.utc),
            metadata=metadata or {},
        )
        await self._store.append_message(conversation.id, user_message)

        window = await self._store.get_recent_messages(conversation.id, self._history_window)
        context = conversation.context

        prompt = self._prompts.build(conversation.stage, context)
        messages = [{"role": "system", "content": prompt}]
        messages.extend({"role": m.role, "content": m.content} for m in window)

        degraded = False
        try:
            result = await self._client.complete(messages, self._chat_options)
            reply = result.text.strip()
        except CompletionError as e:
            logger.error(f"Completion failed for conversation {conversation.id}: {e.code} {e.message}")
            reply = ""
            degraded = True

        if not reply:
            reply = FALLBACK_MESSAGE
            degraded = True

        classification = classify(reply, context)
        if degraded and not classification.suggestions:
            classification.suggestions = list(FALLBACK_SUGGESTIONS)

        # Once the reply exists the exchange is written in full, even if the
        # caller goes away. The conversation lock stays held until it lands.
        record = asyncio.ensure_future(self._record_reply(conversation, reply, classification, degraded))
        try:
            await asyncio.shield(record)
        except asyncio.CancelledError:
            await asyncio.shield(record)
            raise

        return CoachingResponse(
            message=reply,
            suggestions=classification.suggestions,
            follow_up_questions=classification.follow_up_questions,
            strategies=classification.strategies,
            urgency=classification.urgency,
            degraded=degraded,
            conversation_id=conversation.id,
        )

    async def _record_reply(
        self,
        conversation: Conversation,
        reply: str,
        classification: Classification,
        degraded: bool,
    ) -> None:
        metadata: Dict[str, Any] = {
            "suggestions": classification.suggestions,
            "followUpQuestions": classification.follow_up_questions,
            "strategies": classification.strategies,
            "urgency": classification.urgency,
        }
        if degraded:
            metadata["degraded"] = True

        await self._store.append_message(
            conversation.id,
            Message(
                id=generate_message_id(),
                role="assistant",
                content=reply,
                timestamp=datetime.now(timezone.utc),
                metadata=metadata,
            ),
        )

        context = conversation.context
        if classification.urgency == URGENCY_EMERGENCY:
            if conversation.stage != STAGE_CRISIS:
                await self._store.update_stage(conversation.id, STAGE_CRISIS)
                logger.warning(f"Conversation {conversation.id} escalated to crisis")
            if context.emotional_state != "crisis":
                context.emotional_state = "crisis"
                await self._store.update_context(conversation.id, context)
        elif classification.urgency == URGENCY_HIGH and context.emotional_state in ("stable", "improving"):
            context.emotional_state = "struggling"
            await self._store.update_context(conversation.id, context)

    # =========================================================================
    # CRISIS
    # =========================================================================

    async def handle_crisis(
        self,
        principal: Principal,
        crisis_data: Dict[str, Any],
        urgency: str = URGENCY_EMERGENCY,
    ) -> CrisisResponse:
        """
        Immediate crisis support, independent of any conversation.

        Always returns emergency contacts and coping scripts, whatever the
        model does. Never raises for provider or crisis-log failures.
        """
        messages = [
            {"role": "system", "content": self._prompts.crisis_system_prompt()},
            {"role": "user", "content": self._prompts.crisis_user_prompt({**crisis_data, "urgency": urgency})},
        ]

        degraded = False
        try:
            result = await self._client.complete(messages, self._crisis_options)
            text = result.text.strip()
        except CompletionError as e:
            logger.error(f"Crisis completion failed for user {principal.user_id}: {e.code} {e.message}")
            text = ""

        if text:
            suggestions = list(crisis.CRISIS_SUGGESTIONS)
        else:
            text = crisis.STATIC_CRISIS_MESSAGE
            suggestions = list(crisis.STATIC_CRISIS_SUGGESTIONS)
            degraded = True

        response = CrisisResponse(
            message=text,
            suggestions=suggestions,
            follow_up_questions=list(crisis.CRISIS_FOLLOW_UP_QUESTIONS),
            strategies=list(crisis.CRISIS_STRATEGIES),
            urgency=URGENCY_EMERGENCY,
            degraded=degraded,
            emergency_contacts=list(crisis.EMERGENCY_CONTACTS),
            grounding_technique=copy.deepcopy(crisis.GROUNDING_TECHNIQUE),
            breathing_exercise=copy.deepcopy(crisis.BREATHING_EXERCISE),
        )

        try:
            await self._store.log_crisis_event(principal.user_id, {
                "crisisData": crisis_data,
                "reportedUrgency": urgency,
                "response": response.message,
                "degraded": degraded,
                "timestamp": datetime.now(timezone.utc),
            })
        except Exception:
            logger.exception(f"Failed to log crisis event for user {principal.user_id}")

        return response

    # =========================================================================
    # JOURNAL, ASSESSMENT, GUIDANCE
    # =========================================================================

    async def analyze_journal_entry(
        self,
        principal: Principal,
        entry: str,
        mood: Optional[int] = None,
        context: Optional[Context] = None,
    ) -> JournalAnalysis:
        if context is None:
            context = await self._store.get_user_context(principal.user_id)
        return self._journal.analyze(entry, mood=mood, context=context)

    async def run_assessment(
        self,
        principal: Principal,
        user_context: Dict[str, Any],
        stage: str = "initial",
        conversation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Start or continue a recovery assessment.

        Args:
            principal: Caller
            user_context: Goals and background supplied by the client
            stage: initial | planning | review
            conversation_id: Conversation to move into planning

        Returns:
            {stage, questions, nextStep} for initial, else
            {stage, plan, suggestions, followUpQuestions}

        Raises:
            NotFoundException: conversation_id does not belong to the caller
        """
        if stage == "initial":
            return await self._assessment_questions(user_context)

        if conversation_id:
            async with self._lock_for(conversation_id):
                conversation = await self._require_conversation(principal, conversation_id)
                # Planning is only entered from assessment; crisis is never left here.
                if stage == STAGE_PLANNING and conversation.stage == STAGE_ASSESSMENT:
                    await self._store.update_stage(conversation.id, STAGE_PLANNING)

        context = Context(
            current_streak=user_context.get("currentStreak", 0),
            current_goals=list(user_context.get("goals") or []),
        )
        messages = [
            {"role": "system", "content": self._prompts.build(STAGE_PLANNING, context)},
            {"role": "user", "content": PLAN_REQUEST},
        ]

        degraded = False
        try:
            result = await self._client.complete(messages, self._chat_options)
            plan = result.text.strip() or FALLBACK_PLAN
        except CompletionError as e:
            logger.error(f"Plan generation failed for user {principal.user_id}: {e.code} {e.message}")
            plan = FALLBACK_PLAN
            degraded = True

        classification = classify(plan, context)
        data: Dict[str, Any] = {
            "stage": stage,
            "plan": plan,
            "suggestions": classification.suggestions,
            "followUpQuestions": classification.follow_up_questions,
        }
        if degraded:
            data["degraded"] = True
        return data

    async def _assessment_questions(self, user_context: Dict[str, Any]) -> Dict[str, Any]:
        context = Context(current_streak=user_context.get("currentStreak", 0))
        messages = [
            {"role": "system", "content": self._prompts.build(STAGE_ASSESSMENT, context, user_context)},
            {"role": "user", "content": ASSESSMENT_OPENER},
        ]

        questions: List[str] = []
        try:
            result = await self._client.complete(messages, ASSESSMENT_OPTIONS)
            questions = extract_questions(result.text)
        except CompletionError as e:
            logger.error(f"Assessment question generation failed: {e.code} {e.message}")

        return {
            "stage": "initial",
            "questions": questions or list(FALLBACK_ASSESSMENT_QUESTIONS),
            "nextStep": STAGE_PLANNING,
        }

    async def generate_guidance(
        self,
        principal: Principal,
        kind: str,
        extra: Optional[Dict[str, Any]] = None,
    ) -> CoachingResponse:
        """
        Targeted guidance: daily-check-in, trigger-analysis or encouragement.

        Raises:
            BadRequestException: Unknown guidance kind
        """
        template = GUIDANCE_TEMPLATES.get(kind)
        if template is None:
            raise BadRequestException(f"Unknown guidance type: {kind}", code="INVALID_GUIDANCE_TYPE")

        context = await self._store.get_user_context(principal.user_id)
        messages = [
            {"role": "system", "content": self._prompts.system_prompt(STAGE_IMPLEMENTATION, context)},
            {"role": "user", "content": self._prompts.build_template(template, context, extra)},
        ]

        degraded = False
        try:
            result = await self._client.complete(messages, self._chat_options)
            text = result.text.strip()
        except CompletionError as e:
            logger.error(f"Guidance '{kind}' failed for user {principal.user_id}: {e.code} {e.message}")
            text = ""

        if not text:
            text = GUIDANCE_FALLBACKS[template]
            degraded = True

        classification = classify(text, context)
        return CoachingResponse(
            message=text,
            suggestions=classification.suggestions,
            follow_up_questions=classification.follow_up_questions,
            strategies=classification.strategies,
            urgency=classification.urgency,
            degraded=degraded,
        )

    # =========================================================================
    # CONVERSATIONS
    # =========================================================================

    async def get_conversation(self, principal: Principal, conversation_id: str) -> Conversation:
        return await self._require_conversation(principal, conversation_id)

    async def list_conversations(
        self,
        principal: Principal,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Conversation], int]:
        """Page of the caller's conversations, most recently updated first, plus the total."""
        skip = (page - 1) * limit
        conversations = await self._store.list_conversations(principal.user_id, skip=skip, limit=limit)
        total = await self._store.count_conversations(principal.user_id)
        return conversations, total

    async def close_conversation(self, principal: Principal, conversation_id: str) -> None:
        if not await self._store.complete_conversation(conversation_id, principal.user_id):
            raise NotFoundException(message="Conversation not found", code="CONVERSATION_NOT_FOUND")

    async def delete_conversation(self, principal: Principal, conversation_id: str) -> None:
        async with self._lock_for(conversation_id):
            await self._store.delete_conversation(conversation_id, principal.user_id)

    async def get_stats(self, principal: Principal) -> Dict[str, Any]:
        return await self._store.get_conversation_stats(principal.user_id)

    # =========================================================================
    # PROVIDER
    # =========================================================================

    async def get_status(self) -> Dict[str, Any]:
        healthy = await self._client.check_status()
        return {
            "status": "healthy" if healthy else "unhealthy",
            "model": self._client.model,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def list_models(self) -> List[Dict[str, Any]]:
        return await self._client.list_models()

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _lock_for(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    async def _require_conversation(self, principal: Principal, conversation_id: str) -> Conversation:
        conversation = await self._store.get_conversation(conversation_id, principal.user_id)
        if conversation is None:
            raise NotFoundException(message="Conversation not found", code="CONVERSATION_NOT_FOUND")
        return conversation
