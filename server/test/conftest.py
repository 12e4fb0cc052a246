import json

import httpx
import pytest
from openai import AsyncOpenAI

from server.schemas.itinerary_schema import GeneratedItinerary, TripRequest


def completion_body(content: str) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 0,
        "model": "deepseek-chat",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}
        ],
    }


def make_client(handler) -> AsyncOpenAI:
    """AsyncOpenAI whose HTTP traffic goes to `handler` instead of the network."""
    return AsyncOpenAI(
        api_key="test-key",
        base_url="https://api.deepseek.test/v1",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class RecordingModel:
    """Replies with fixed text and remembers every request body it saw."""

    def __init__(self, content: str = "", status_code: int = 200, error_body=None):
        self.content = content
        self.status_code = status_code
        self.error_body = error_body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append({
            "url": str(request.url),
            "headers": dict(request.headers),
            "body": json.loads(request.content),
        })
        if self.status_code != 200:
            if self.error_body is None:
                return httpx.Response(self.status_code, text="")
            return httpx.Response(self.status_code, json=self.error_body)
        return httpx.Response(200, json=completion_body(self.content))

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def trip_request() -> TripRequest:
    return TripRequest(
        destination="Peru",
        budget=2500,
        duration=3,
        companions="couple",
        interests=["food", "culture"],
    )


@pytest.fixture
def itinerary() -> GeneratedItinerary:
    return GeneratedItinerary(
        destination="Peru",
        budget=2500,
        duration=2,
        companions="couple",
        interests=["food"],
        dayPlans=[
            {"day": 1, "date": "May 1", "activities": [
                {"time": "09:00 AM", "title": "Plaza de Armas walk", "description": "Old town",
                 "location": "Cusco", "cost": 0},
            ]},
            {"day": 2, "date": "May 2", "activities": []},
        ],
        hotels=[{"name": "Casa Andina", "description": "Central", "price": 90, "rating": 4.2,
                 "image": "https://example.com/h.jpg", "location": "Cusco"}],
        totalCost=1800,
    )


class FakeRepository:
    """In-memory stand-in for server.utils.itinerary_repository."""

    def __init__(self, records=None):
        self.records = dict(records or {})
        self.saved = []

    async def save_itinerary(self, user_id, itinerary):
        self.saved.append((user_id, itinerary))
        return f"id-{len(self.saved)}"

    async def get_itinerary(self, itinerary_id):
        return self.records.get(itinerary_id)

    async def list_itineraries_for_user(self, user_id, limit=20):
        return [r for r in self.records.values() if r["user_id"] == user_id]
