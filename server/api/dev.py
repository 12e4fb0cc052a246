import json
import os

from fastapi import APIRouter, Depends

from server.agents.itinerary_agent.itinerary_agent import coerce_itinerary
from server.api.deps import get_store
from server.workflow.itinerary_store import ItineraryStore

# Only mounted when the TEMPO flag is on
router = APIRouter(tags=["dev"])

SAMPLE_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "sample_itinerary.json")


def load_sample() -> dict:
    with open(SAMPLE_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


@router.get("/sample-itinerary")
def sample_itinerary() -> dict:
    return load_sample()


@router.post("/load-sample")
def load_sample_into_store(store: ItineraryStore = Depends(get_store)) -> dict:
    store.set_itinerary(coerce_itinerary(load_sample()))
    return {"state": store.state.value, "destination": store.current_itinerary.destination}
