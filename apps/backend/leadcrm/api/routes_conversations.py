from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from leadcrm.contracts import PathId, api
from leadcrm.models.db import get_db
from leadcrm.services.chat_relay import ChatRelay, ConversationNotFound, ConversationStore, get_chat_relay
from leadcrm.services.state_service import HistoryCache, get_history_cache

router = APIRouter(tags=["conversations"])
conversations = api["conversations"]
advisor = api["advisor"]

SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"}


def get_store(db: Session = Depends(get_db)) -> ConversationStore:
    return ConversationStore(db)


@router.get(conversations["list"].fastapi_path, response_model=conversations["list"].response_model)
def list_conversations(store: ConversationStore = Depends(get_store)):
    return store.list_conversations()


@router.get(conversations["get"].fastapi_path, response_model=conversations["get"].response_model)
def get_conversation(id: PathId, store: ConversationStore = Depends(get_store)):
    convo = store.get_conversation(id)
    if not convo:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return convo


@router.post(
    conversations["create"].fastapi_path,
    response_model=conversations["create"].response_model,
    status_code=conversations["create"].success_status,
)
def create_conversation(payload: Any = Body(None), store: ConversationStore = Depends(get_store)):
    data = conversations["create"].parse_input(payload if payload is not None else {})
    return store.create_conversation(data.title)


@router.delete(conversations["delete"].fastapi_path, status_code=conversations["delete"].success_status)
def delete_conversation(
    id: PathId,
    store: ConversationStore = Depends(get_store),
    cache: Optional[HistoryCache] = Depends(get_history_cache),
):
    store.delete_conversation(id)
    if cache:
        cache.clear(id)
    return Response(status_code=204)


def _stream(relay: ChatRelay, conversation_id: Optional[int], content: str, announce: bool) -> StreamingResponse:
    try:
        turn = relay.begin(conversation_id, content)
    except ConversationNotFound as e:
        raise HTTPException(status_code=404, detail="Conversation not found") from e
    return StreamingResponse(
        relay.stream(turn, announce=announce),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post(conversations["send_message"].fastapi_path)
def send_message(id: PathId, payload: Any = Body(None), relay: ChatRelay = Depends(get_chat_relay)):
    data = conversations["send_message"].parse_input(payload)
    return _stream(relay, id, data.content, announce=False)


@router.post(advisor["send_message"].fastapi_path)
def send_advisor_message(payload: Any = Body(None), relay: ChatRelay = Depends(get_chat_relay)):
    """Like send_message, but creates the conversation when no id is given.

    The first frame carries the conversation id so the caller can continue it.
    """
    data = advisor["send_message"].parse_input(payload)
    return _stream(relay, data.conversation_id, data.content, announce=True)
