import json

from server.schemas.itinerary_schema import UnverifiedItinerary
from server.utils.errors import ParseError

NO_JSON_MESSAGE = "no valid JSON object found in model output"


def extract_json_object(text: str) -> UnverifiedItinerary:
    """Recover a JSON object from model text that may carry prose or fences.

    Tries the whole text first, then the greedy span from the first "{" to
    the last "}". Two sibling objects produce a span that is not valid JSON
    and fail like any other unparseable reply.
    """
    text = text or ""
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        value = None
    if isinstance(value, dict):
        return value

    # Also covers a top-level array wrapping the object
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ParseError(NO_JSON_MESSAGE)
    try:
        value = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(NO_JSON_MESSAGE) from e
    if not isinstance(value, dict):
        raise ParseError(NO_JSON_MESSAGE)
    return value
