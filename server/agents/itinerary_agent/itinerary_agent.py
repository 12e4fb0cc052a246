# server/agents/itinerary_agent/itinerary_agent.py

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Type, TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from .json_extract import extract_json_object
from .llm_client import call_chat_completion
from .prompt import build_itinerary_prompt

from server.schemas.itinerary_schema import (
    Activity,
    DayPlan,
    GeneratedItinerary,
    Hotel,
    TripRequest,
    UnverifiedItinerary,
)
from server.utils.config import GENERATION_TIMEOUT_SECONDS
from server.utils.errors import GenerationCancelledError, ItineraryValidationError

logger = logging.getLogger(__name__)

GENERATION_TEMPERATURE = 0.5
GENERATION_MAX_TOKENS = 4000

REQUEST_FIELDS = ("destination", "budget", "duration", "companions", "interests")

M = TypeVar("M", bound=BaseModel)


def _read_items(raw: Any, model: Type[M]) -> List[M]:
    """Keep the entries that read as `model`, drop the rest."""
    if not isinstance(raw, list):
        return []
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            items.append(model.model_validate(entry))
        except ValidationError:
            logger.debug("Dropping malformed %s entry: %r", model.__name__, entry)
    return items


def _read_day_plans(raw: Any) -> List[DayPlan]:
    if not isinstance(raw, list):
        return []
    days = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        entry = dict(entry, activities=_read_items(entry.get("activities"), Activity))
        try:
            days.append(DayPlan.model_validate(entry))
        except ValidationError:
            logger.debug("Dropping malformed day plan: %r", entry)
    return days


def _read_total(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def coerce_itinerary(data: Dict[str, Any]) -> GeneratedItinerary:
    """Best-effort read of an itinerary-shaped dict.

    Nothing is rejected: unreadable days, activities or hotels are dropped and
    an unreadable total becomes 0, so the caller always gets something to show.
    """
    data = dict(data or {})
    day_plans = _read_day_plans(data.pop("dayPlans", data.pop("day_plans", None)))
    hotels = _read_items(data.pop("hotels", None), Hotel)
    total_cost = _read_total(data.pop("totalCost", data.pop("total_cost", None)))
    interests = data.pop("interests", None)
    return GeneratedItinerary(
        **{k: v for k, v in data.items() if k not in REQUEST_FIELDS},
        destination=str(data.get("destination") or ""),
        budget=_read_total(data.get("budget")),
        duration=int(_read_total(data.get("duration"))),
        companions=str(data.get("companions") or ""),
        interests=[str(i) for i in interests] if isinstance(interests, list) else [],
        dayPlans=day_plans,
        hotels=hotels,
        totalCost=total_cost,
    )


def validate_itinerary(data: Dict[str, Any]) -> GeneratedItinerary:
    """Strict read: missing keys or malformed shapes raise ItineraryValidationError."""
    missing = [key for key in ("dayPlans", "hotels", "totalCost") if key not in data]
    if missing:
        raise ItineraryValidationError(f"Itinerary is missing {', '.join(missing)}")
    try:
        return GeneratedItinerary.model_validate(data)
    except ValidationError as e:
        raise ItineraryValidationError(f"Itinerary has an invalid shape: {e}") from e


def assemble_itinerary(
    request: TripRequest,
    extracted: UnverifiedItinerary,
    validate: bool = False,
) -> GeneratedItinerary:
    """Merge the model's plan with the submitted request.

    Request fields always overwrite anything the model echoed back.
    """
    merged = dict(extracted)
    merged.update(request.model_dump(include=set(REQUEST_FIELDS)))
    if validate:
        return validate_itinerary(merged)
    return coerce_itinerary(merged)


async def generate_itinerary(
    request: TripRequest,
    *,
    client: Optional[AsyncOpenAI] = None,
    cancel_event: Optional[asyncio.Event] = None,
    validate: bool = False,
    timeout: float = GENERATION_TIMEOUT_SECONDS,
) -> GeneratedItinerary:
    """
    Prompt -> model call -> tolerant JSON extraction -> assembled itinerary.

    If `cancel_event` is set before the model answers, the outbound request is
    cancelled and GenerationCancelledError is raised.
    """
    prompt = build_itinerary_prompt(request)
    call = call_chat_completion(
        prompt,
        temperature=GENERATION_TEMPERATURE,
        max_tokens=GENERATION_MAX_TOKENS,
        stream=False,
        timeout=timeout,
        client=client,
    )
    try:
        content = await race_cancel(call, cancel_event)
        extracted = extract_json_object(content)
    except GenerationCancelledError:
        logger.info("Itinerary generation for %s cancelled", request.destination)
        raise
    except Exception as e:
        logger.error("Error generating itinerary: %s", e)
        raise

    itinerary = assemble_itinerary(request, extracted, validate=validate)
    logger.info(
        "Generated %d-day itinerary for %s (%d day plans, %d hotels)",
        request.duration, request.destination, len(itinerary.day_plans), len(itinerary.hotels),
    )
    return itinerary


async def race_cancel(coro, cancel_event: Optional[asyncio.Event]):
    """Await `coro` unless `cancel_event` fires first; then cancel it and raise GenerationCancelledError."""
    if cancel_event is None:
        return await coro
    task = asyncio.ensure_future(coro)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()
    if task in done:
        return task.result()
    task.cancel()
    raise GenerationCancelledError("Itinerary generation was cancelled")
