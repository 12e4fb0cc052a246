import asyncio
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, status

from server.agents.itinerary_agent.itinerary_agent import coerce_itinerary
from server.api.deps import get_store, to_http_exception
from server.schemas.itinerary_schema import SaveItineraryPayload, TripRequest
from server.utils.errors import TripPlannerError
from server.workflow.itinerary_store import ItineraryStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["itineraries"])

DISCONNECT_POLL_SECONDS = 0.5


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)
    logger.info("Client went away; cancelling itinerary generation")
    cancel_event.set()


def _state_view(store: ItineraryStore) -> Dict[str, Any]:
    return {
        "state": store.state.value,
        "is_loading": store.is_loading,
        "error": store.error,
        "itinerary": store.current_itinerary.to_wire() if store.current_itinerary else None,
    }


@router.post("/generate")
async def generate(payload: TripRequest, request: Request, store: ItineraryStore = Depends(get_store)) -> dict:
    """
    Generates a new itinerary for the submitted trip form.
    The request to the model is cancelled if the client disconnects.
    """
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
    try:
        itinerary = await store.create_itinerary(payload, cancel_event=cancel_event)
    except TripPlannerError as e:
        raise to_http_exception(e)
    finally:
        watcher.cancel()
    return itinerary.to_wire()


@router.get("/current")
async def get_current(store: ItineraryStore = Depends(get_store)) -> dict:
    return _state_view(store)


@router.put("/current")
async def put_current(payload: Dict[str, Any], store: ItineraryStore = Depends(get_store)) -> dict:
    store.set_itinerary(coerce_itinerary(payload))
    return _state_view(store)


@router.post("/save", status_code=status.HTTP_201_CREATED)
async def save(payload: SaveItineraryPayload, store: ItineraryStore = Depends(get_store)) -> dict:
    try:
        itinerary_id = await store.save_itinerary(payload.user_id)
    except TripPlannerError as e:
        raise to_http_exception(e)
    return {"id": itinerary_id}


@router.get("/user/{user_id}", response_model=List[dict])
async def list_for_user(user_id: str, store: ItineraryStore = Depends(get_store)) -> List[dict]:
    return await store.list_itineraries(user_id)


@router.get("/{itinerary_id}")
async def load(itinerary_id: str, store: ItineraryStore = Depends(get_store)) -> dict:
    try:
        itinerary = await store.load_itinerary(itinerary_id)
    except TripPlannerError as e:
        raise to_http_exception(e)
    return itinerary.to_wire()
