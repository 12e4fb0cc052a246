# itinerary_store.py

import asyncio
import json
import logging
import os
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from server.agents.itinerary_agent.itinerary_agent import coerce_itinerary, generate_itinerary, race_cancel
from server.schemas.itinerary_schema import GeneratedItinerary, TripRequest
from server.utils import itinerary_repository
from server.utils.errors import ItineraryNotFoundError, LLMTimeoutError, NoItineraryError

logger = logging.getLogger(__name__)

Generator = Callable[..., Awaitable[GeneratedItinerary]]


class StoreState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def request_fingerprint(request: TripRequest) -> str:
    data = request.model_dump()
    data["interests"] = sorted(data["interests"])
    return json.dumps(data, sort_keys=True)


class _SharedGeneration:
    def __init__(self, task: asyncio.Future):
        self.task = task
        self.waiters = 0


class ItineraryStore:
    """
    The single place that holds the current itinerary for a process.

    All mutations go through create_itinerary / set_itinerary /
    load_itinerary. A custom `generator` is called as
    `generator(request, cancel_event=event)` whenever a caller supplies an
    event, so it must accept that keyword.

    Concurrent create_itinerary calls are not coordinated: whichever resolves
    last decides the final state. With `coalesce_requests=True`, concurrent
    calls for the same request share one generation instead. Each caller's
    cancel_event only detaches that caller; the shared generation is
    cancelled once every caller waiting on it has gone.

    When `snapshot_path` is set the current itinerary is written there as JSON
    after every change and read back on construction.
    """

    def __init__(
        self,
        generator: Optional[Generator] = None,
        repository: Any = None,
        snapshot_path: Optional[str] = None,
        generation_timeout: Optional[float] = None,
        coalesce_requests: bool = False,
    ):
        self.generator = generator or generate_itinerary
        self.repository = repository if repository is not None else itinerary_repository
        self.snapshot_path = snapshot_path
        # Overall cap on one generation on top of the model client's own
        # request timeout. Off by default.
        self.generation_timeout = generation_timeout
        self.coalesce_requests = coalesce_requests

        self.current_itinerary: Optional[GeneratedItinerary] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self._in_flight: Dict[str, _SharedGeneration] = {}

        if snapshot_path:
            self._rehydrate()

    @property
    def state(self) -> StoreState:
        if self.is_loading:
            return StoreState.LOADING
        if self.error is not None:
            return StoreState.FAILED
        if self.current_itinerary is not None:
            return StoreState.READY
        return StoreState.IDLE

    def set_itinerary(self, itinerary: GeneratedItinerary) -> None:
        self._set_current(itinerary)
        self.is_loading = False
        self.error = None

    async def create_itinerary(
        self,
        request: TripRequest,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GeneratedItinerary:
        self.is_loading = True
        self.error = None
        try:
            itinerary = await self._generate(request, cancel_event)
        except asyncio.CancelledError:
            self.is_loading = False
            raise
        except Exception as e:
            logger.error("Itinerary generation error: %s", e)
            self.error = str(e) or "Failed to generate itinerary"
            self.is_loading = False
            raise

        self._set_current(itinerary)
        self.is_loading = False
        self.error = None
        return itinerary

    async def save_itinerary(self, user_id: str) -> str:
        """Persist the current itinerary for `user_id`; store state is untouched."""
        if self.current_itinerary is None:
            raise NoItineraryError("No itinerary to save")
        return await self.repository.save_itinerary(user_id, self.current_itinerary)

    async def load_itinerary(self, itinerary_id: str) -> GeneratedItinerary:
        self.is_loading = True
        self.error = None
        try:
            record = await self.repository.get_itinerary(itinerary_id)
            if not record:
                raise ItineraryNotFoundError("Itinerary not found")
            itinerary = coerce_itinerary(record.get("itinerary_data") or {})
        except asyncio.CancelledError:
            self.is_loading = False
            raise
        except Exception as e:
            logger.error("Error loading itinerary %s: %s", itinerary_id, e)
            self.error = str(e) or "Failed to load itinerary"
            self.is_loading = False
            raise

        self._set_current(itinerary)
        self.is_loading = False
        return itinerary

    async def list_itineraries(self, user_id: str) -> List[Dict[str, Any]]:
        return await self.repository.list_itineraries_for_user(user_id)

    # --- internals ---

    async def _generate(self, request: TripRequest, cancel_event: Optional[asyncio.Event]) -> GeneratedItinerary:
        if not self.coalesce_requests:
            return await self._run_generator(request, cancel_event)

        key = request_fingerprint(request)
        shared = self._in_flight.get(key)
        if shared is None:
            # No per-caller event here: callers detach through race_cancel below.
            shared = _SharedGeneration(asyncio.ensure_future(self._run_generator(request, None)))
            self._in_flight[key] = shared
            shared.task.add_done_callback(lambda _: self._forget(key, shared))
        else:
            logger.info("Joining in-flight generation for %s", request.destination)

        shared.waiters += 1
        try:
            return await race_cancel(asyncio.shield(shared.task), cancel_event)
        finally:
            shared.waiters -= 1
            if shared.waiters == 0 and not shared.task.done():
                logger.info("Every caller left; cancelling shared generation for %s", request.destination)
                self._forget(key, shared)
                shared.task.cancel()

    def _forget(self, key: str, shared: _SharedGeneration) -> None:
        if self._in_flight.get(key) is shared:
            del self._in_flight[key]

    async def _run_generator(self, request: TripRequest, cancel_event: Optional[asyncio.Event]) -> GeneratedItinerary:
        kwargs = {"cancel_event": cancel_event} if cancel_event is not None else {}
        pending = self.generator(request, **kwargs)
        if self.generation_timeout is None:
            return await pending
        try:
            return await asyncio.wait_for(pending, self.generation_timeout)
        except LLMTimeoutError:
            raise
        except asyncio.TimeoutError as e:
            raise LLMTimeoutError("Itinerary generation timed out") from e

    def _set_current(self, itinerary: GeneratedItinerary) -> None:
        self.current_itinerary = itinerary
        if self.snapshot_path:
            self._write_snapshot()

    def _write_snapshot(self) -> None:
        payload = {"currentItinerary": self.current_itinerary.to_wire() if self.current_itinerary else None}
        tmp_path = f"{self.snapshot_path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False)
            os.replace(tmp_path, self.snapshot_path)
        except OSError as e:
            logger.warning("Could not write itinerary snapshot %s: %s", self.snapshot_path, e)

    def _rehydrate(self) -> None:
        if not os.path.exists(self.snapshot_path):
            return
        try:
            with open(self.snapshot_path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable itinerary snapshot %s: %s", self.snapshot_path, e)
            return
        data = payload.get("currentItinerary") if isinstance(payload, dict) else None
        if isinstance(data, dict):
            self.current_itinerary = coerce_itinerary(data)
            logger.info("Restored itinerary for %s from snapshot", self.current_itinerary.destination)
