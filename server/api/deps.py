from typing import Dict

from fastapi import HTTPException, Request, status

from server.agents.chat_agent.chat_agent import ChatSession
from server.utils.errors import (
    GenerationCancelledError,
    ItineraryNotFoundError,
    LLMTimeoutError,
    NoItineraryError,
    TripPlannerError,
)
from server.workflow.itinerary_store import ItineraryStore


def get_store(request: Request) -> ItineraryStore:
    return request.app.state.store


def get_chat_sessions(request: Request) -> Dict[str, ChatSession]:
    return request.app.state.chat_sessions


def to_http_exception(error: TripPlannerError) -> HTTPException:
    """Map a planner failure onto the status code the UI should see."""
    if isinstance(error, LLMTimeoutError):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    elif isinstance(error, NoItineraryError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ItineraryNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, GenerationCancelledError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        # UpstreamError, TransportError, ParseError, ItineraryValidationError
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=str(error))
