from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

Companions = Literal["solo", "couple", "family", "friends", "business"]

# Whatever the tolerant extractor recovered from model text. Nothing about its
# shape has been checked yet.
UnverifiedItinerary = Dict[str, Any]


class TripRequest(BaseModel):
    """What the trip form submits. Immutable once submitted."""
    model_config = ConfigDict(frozen=True)

    destination: str = Field(..., min_length=1)
    budget: float = Field(..., gt=0, description="Total budget in currency units")
    duration: int = Field(..., gt=0, description="Trip length in days")
    companions: Companions = "solo"
    interests: List[str] = Field(default_factory=list)


# Model output is read leniently: numbers are accepted where text is expected
# and missing or null sub-fields fall back to empty defaults.
class _ModelOutput(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="allow")

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value


class Activity(_ModelOutput):
    time: str = ""
    title: str = ""
    description: str = ""
    location: str = ""
    cost: float = 0


class DayPlan(_ModelOutput):
    day: int = 0
    date: str = ""
    activities: List[Activity] = Field(default_factory=list)


class Hotel(_ModelOutput):
    name: str = ""
    description: str = ""
    price: float = 0
    rating: float = 0  # 0-5 scale, not bounds-checked
    image: str = ""
    location: str = ""


class GeneratedItinerary(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    destination: str
    budget: float
    duration: int
    companions: str
    interests: List[str] = Field(default_factory=list)
    day_plans: List[DayPlan] = Field(default_factory=list, alias="dayPlans")
    hotels: List[Hotel] = Field(default_factory=list)
    # As reported by the model; never recomputed from activity/hotel costs.
    total_cost: float = Field(0, alias="totalCost")

    @property
    def remaining_budget(self) -> float:
        return self.budget - self.total_cost

    @property
    def budget_status(self) -> str:
        return "Under budget" if self.remaining_budget >= 0 else "Over budget"

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class ItineraryRecord(BaseModel):
    """A row of the itineraries collection."""
    id: str
    user_id: str
    destination: Optional[str] = None
    budget: Optional[float] = None
    duration: Optional[int] = None
    companions: Optional[str] = None
    itinerary_data: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class SaveItineraryPayload(BaseModel):
    user_id: str = Field(..., min_length=1)
