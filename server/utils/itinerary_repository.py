import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId

from server.schemas.itinerary_schema import GeneratedItinerary
from server.utils.db import get_db

logger = logging.getLogger(__name__)


def _object_id(itinerary_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(itinerary_id)
    except (InvalidId, TypeError):
        return None


def _to_record(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Converts MongoDB's ObjectId to string 'id' for JSON serialization."""
    doc = dict(doc)
    if isinstance(doc.get("_id"), ObjectId):
        doc["id"] = str(doc.pop("_id"))
    return doc


async def save_itinerary(user_id: str, itinerary: GeneratedItinerary) -> str:
    """Insert one itineraries row and return its generated id."""
    db = get_db()
    doc = {
        "user_id": user_id,
        "destination": itinerary.destination,
        "budget": itinerary.budget,
        "duration": itinerary.duration,
        "companions": itinerary.companions,
        "itinerary_data": itinerary.to_wire(),
        "created_at": datetime.now(timezone.utc),
    }
    try:
        res = await db.itineraries.insert_one(doc)
    except Exception as e:
        logger.error("Error saving itinerary: %s: %s", type(e).__name__, e)
        raise
    logger.info("save_itinerary: inserted id=%s for user=%s", res.inserted_id, user_id)
    return str(res.inserted_id)


async def get_itinerary(itinerary_id: str) -> Optional[Dict[str, Any]]:
    oid = _object_id(itinerary_id)
    if oid is None:
        return None
    db = get_db()
    doc = await db.itineraries.find_one({"_id": oid})
    if not doc:
        return None
    return _to_record(doc)


async def list_itineraries_for_user(user_id: str, limit: int = 20) -> List[Dict[str, Any]]:
    db = get_db()
    cursor = db.itineraries.find({"user_id": user_id}).sort("created_at", -1).limit(limit)
    results = []
    async for doc in cursor:
        results.append(_to_record(doc))
    return results


async def delete_itinerary(itinerary_id: str) -> bool:
    oid = _object_id(itinerary_id)
    if oid is None:
        return False
    db = get_db()
    res = await db.itineraries.delete_one({"_id": oid})
    return res.deleted_count == 1
