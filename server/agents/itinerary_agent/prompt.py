from server.schemas.itinerary_schema import TripRequest

OUTPUT_FORMAT = """{
  "dayPlans": [
    {
      "day": 1,
      "date": "June 15, 2023",
      "activities": [
        {
          "time": "09:00 AM",
          "title": "Activity Name",
          "description": "Description of the activity",
          "location": "Location Name",
          "cost": 50
        }
      ]
    }
  ],
  "hotels": [
    {
      "name": "Hotel Name",
      "description": "Hotel description",
      "price": 150,
      "rating": 4.5,
      "image": "https://images.unsplash.com/photo-id",
      "location": "Hotel Location"
    }
  ],
  "totalCost": 2500
}"""


def build_itinerary_prompt(request: TripRequest) -> str:
    interests = ", ".join(request.interests) if request.interests else "a bit of everything"
    return (
        f"Create a detailed travel itinerary for a {request.duration}-day trip to "
        f"{request.destination} with a budget of {_amount(request.budget)}.\n"
        f"The traveler is going {_companions_phrase(request.companions)} "
        f"({request.companions}) and is interested in {interests}.\n"
        "\n"
        "Please provide:\n"
        "1. A day-by-day plan with specific activities, times, locations, descriptions, and costs\n"
        "2. Hotel recommendations that fit within the budget\n"
        f"3. Make sure the total cost stays within the budget of {_amount(request.budget)}\n"
        "\n"
        "Format the response as a JSON object with the following structure:\n"
        f"{OUTPUT_FORMAT}\n"
        "\n"
        "IMPORTANT: Respond ONLY with the JSON object, no additional text."
    )


def _companions_phrase(companions: str) -> str:
    return {
        "solo": "alone",
        "couple": "as a couple",
        "family": "with family",
        "friends": "with friends",
        "business": "on business",
    }.get(companions, f"with {companions}")


def _amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
