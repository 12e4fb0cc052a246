from typing import Optional


class TripPlannerError(Exception):
    """Base class for every failure raised by the planner core."""


class LLMTimeoutError(TripPlannerError, TimeoutError):
    """The model call did not finish in its allotted time."""


class UpstreamError(TripPlannerError):
    """The model endpoint answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransportError(TripPlannerError):
    """Network, DNS or TLS failure before a response was received."""


class ParseError(TripPlannerError, ValueError):
    pass


class ItineraryValidationError(TripPlannerError, ValueError):
    pass


class NoItineraryError(TripPlannerError):
    pass


class ItineraryNotFoundError(TripPlannerError, LookupError):
    pass


class GenerationCancelledError(TripPlannerError):
    pass
