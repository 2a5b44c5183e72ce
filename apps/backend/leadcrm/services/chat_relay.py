"""
Program advisor chat relay.

A send moves through: conversation ensured -> user message persisted ->
streaming -> complete | failed. The user message is committed before the
completion API is contacted; the assistant reply is stored as one row once the
stream ends. On failure the caller receives a single fallback error frame and
whatever was streamed so far is discarded.
"""

import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, List, Optional

from fastapi import Depends
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from leadcrm.config import settings
from leadcrm.models.conversation import Conversation
from leadcrm.models.db import SessionLocal
from leadcrm.models.message import Message
from leadcrm.schemas import DEFAULT_CONVERSATION_TITLE
from leadcrm.services.openai_service import CompletionSource, get_completion_source
from leadcrm.services.state_service import HistoryCache, get_history_cache
from leadcrm.sse import encode_frame

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Sorry, I encountered an error. Please try again."


class ConversationNotFound(Exception):
    def __init__(self, conversation_id: int):
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = conversation_id


class ConversationStore:
    """Conversation and message persistence on a caller-owned session."""

    def __init__(self, db: Session):
        self.db = db

    def list_conversations(self) -> List[Conversation]:
        stmt = select(Conversation).order_by(Conversation.created_at.desc(), Conversation.id.desc())
        return list(self.db.scalars(stmt))

    def get_conversation(self, conversation_id: int) -> Optional[Conversation]:
        stmt = (
            select(Conversation)
            .options(selectinload(Conversation.messages))
            .where(Conversation.id == conversation_id)
        )
        return self.db.scalars(stmt).first()

    def create_conversation(self, title: str = DEFAULT_CONVERSATION_TITLE) -> Conversation:
        convo = Conversation(title=title)
        self.db.add(convo)
        self.db.commit()
        self.db.refresh(convo)
        return convo

    def delete_conversation(self, conversation_id: int) -> None:
        self.db.execute(delete(Message).where(Message.conversation_id == conversation_id))
        self.db.execute(delete(Conversation).where(Conversation.id == conversation_id))
        self.db.commit()

    def recent_messages(self, conversation_id: int, limit: int) -> List[Message]:
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.id.desc())
            .limit(limit)
        )
        return list(reversed(self.db.scalars(stmt).all()))


@dataclass
class Turn:
    """A send whose user message is already stored."""
    conversation_id: int
    created_conversation: bool
    history: List[Dict[str, str]] = field(default_factory=list)


class ChatRelay:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        completions: CompletionSource,
        cache: Optional[HistoryCache] = None,
        max_history: int = settings.MAX_CONVERSATION_HISTORY,
    ):
        self.session_factory = session_factory
        self.completions = completions
        self.cache = cache
        self.max_history = max_history

    def begin(self, conversation_id: Optional[int], content: str) -> Turn:
        """Ensure the conversation and persist the user message.

        Raises ConversationNotFound for an unknown id; any storage error
        propagates before the completion API is called.
        """
        with self.session_factory() as db:
            created = conversation_id is None
            if created:
                convo = Conversation(title=DEFAULT_CONVERSATION_TITLE)
                db.add(convo)
                db.flush()
            else:
                convo = db.get(Conversation, conversation_id)
                if convo is None:
                    raise ConversationNotFound(conversation_id)

            history = self._load_history(ConversationStore(db), convo.id)
            db.add(Message(conversation_id=convo.id, role="user", content=content))
            db.commit()
            turn = Turn(conversation_id=convo.id, created_conversation=created, history=history)

        turn.history.append({"role": "user", "content": content})
        if self.cache:
            self._mirror(turn.conversation_id, "user", content)
        logger.debug("Conversation %s: user message stored (new=%s)", turn.conversation_id, created)
        return turn

    async def stream(self, turn: Turn, announce: bool = False) -> AsyncIterator[str]:
        """Relay the completion as SSE frames and store the full reply."""
        if announce:
            yield encode_frame({"conversationId": turn.conversation_id})

        parts: List[str] = []
        try:
            async for delta in self.completions.stream(turn.history[-self.max_history:]):
                if not delta:
                    continue
                parts.append(delta)
                yield encode_frame({"content": delta})

            reply = "".join(parts)
            with self.session_factory() as db:
                db.add(Message(conversation_id=turn.conversation_id, role="assistant", content=reply))
                db.commit()
        except Exception:
            logger.exception("Advisor reply failed for conversation %s", turn.conversation_id)
            yield encode_frame({"error": FALLBACK_MESSAGE})
            return

        if self.cache:
            self._mirror(turn.conversation_id, "assistant", reply)
        logger.debug("Conversation %s: reply stored (%d chunks)", turn.conversation_id, len(parts))
        yield encode_frame({"done": True})

    def _mirror(self, conversation_id: int, role: str, content: str) -> None:
        # Drop a history that missed a turn so the next read goes to the database
        if not self.cache.push_message(conversation_id, role, content):
            self.cache.clear(conversation_id)

    def _load_history(self, store: ConversationStore, conversation_id: int) -> List[Dict[str, str]]:
        if self.cache:
            cached = self.cache.get_history(conversation_id)
            if cached:
                return cached
        history = [
            {"role": m.role, "content": m.content}
            for m in store.recent_messages(conversation_id, self.max_history)
        ]
        if self.cache:
            self.cache.warm(conversation_id, history)
        return history


def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


def get_chat_relay(
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    completions: CompletionSource = Depends(get_completion_source),
    cache: Optional[HistoryCache] = Depends(get_history_cache),
) -> ChatRelay:
    return ChatRelay(session_factory, completions, cache)
