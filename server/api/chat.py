from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status

from server.agents.chat_agent.chat_agent import ChatSession
from server.api.deps import get_chat_sessions, get_store
from server.schemas.chat_schema import ChatSessionOut, SendMessagePayload
from server.workflow.itinerary_store import ItineraryStore

router = APIRouter(tags=["chat"])


def _session_out(session: ChatSession) -> ChatSessionOut:
    return ChatSessionOut(id=session.id, messages=session.messages)


def _find_session(session_id: str, sessions: Dict[str, ChatSession]) -> ChatSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Chat session not found")
    return session


@router.post("/sessions", response_model=ChatSessionOut, status_code=status.HTTP_201_CREATED)
async def create_session(
        store: ItineraryStore = Depends(get_store),
        sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> ChatSessionOut:
    """Opens a chat panel about whatever itinerary the store currently holds."""
    session = ChatSession(itinerary_source=lambda: store.current_itinerary)
    sessions[session.id] = session
    return _session_out(session)


@router.post("/sessions/{session_id}/messages", response_model=ChatSessionOut)
async def send_message(
        session_id: str,
        payload: SendMessagePayload,
        sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> ChatSessionOut:
    # Never fails because of the model: errors come back as an apology reply.
    session = _find_session(session_id, sessions)
    await session.send(payload.content)
    return _session_out(session)


@router.get("/sessions/{session_id}", response_model=ChatSessionOut)
async def get_session(
        session_id: str,
        sessions: Dict[str, ChatSession] = Depends(get_chat_sessions),
) -> ChatSessionOut:
    return _session_out(_find_session(session_id, sessions))
