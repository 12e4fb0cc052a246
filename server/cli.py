"""
Command-line front end for the planner.

  trip-planner plan --destination Peru --budget 2500 --duration 5 \\
      --companions couple --interests food,culture
  trip-planner suggest fra
"""

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from server.agents.chat_agent.chat_agent import ChatSession
from server.agents.destination_agent.autosuggest import filter_countries
from server.schemas.itinerary_schema import GeneratedItinerary, TripRequest
from server.utils.config import ITINERARY_STORAGE_PATH, LOG_LEVEL
from server.utils.db import connect_to_mongo, close_mongo_connection
from server.utils.errors import TripPlannerError
from server.utils.progress import ProgressTicker
from server.workflow.itinerary_store import ItineraryStore

COMPANIONS = ["solo", "couple", "family", "friends", "business"]


def print_itinerary(itinerary: GeneratedItinerary) -> None:
    print(f"\nYour {itinerary.duration}-Day Trip to {itinerary.destination}")
    print(f"Traveling: {itinerary.companions} | Budget: ${itinerary.budget:,.0f}")
    for day in itinerary.day_plans:
        print(f"\nDay {day.day} - {day.date}")
        for act in day.activities:
            print(f"  {act.time:>8}  {act.title} @ {act.location} (${act.cost:,.0f})")
    if itinerary.hotels:
        print("\nHotels")
        for hotel in itinerary.hotels:
            print(f"  {hotel.name} - ${hotel.price:,.0f}/night, {hotel.rating:.1f}/5 ({hotel.location})")
    print(f"\nTotal cost: ${itinerary.total_cost:,.0f} "
          f"({itinerary.budget_status}: ${abs(itinerary.remaining_budget):,.0f})")


async def chat_loop(store: ItineraryStore) -> None:
    session = ChatSession(itinerary_source=lambda: store.current_itinerary)
    print(f"\n{session.messages[0].content} (empty line to quit)")
    while True:
        question = await asyncio.to_thread(input, "> ")
        if not question.strip():
            return
        reply = await session.send(question)
        print(reply.content)


async def run_plan(args: argparse.Namespace) -> int:
    store = ItineraryStore(snapshot_path=ITINERARY_STORAGE_PATH)
    try:
        request = TripRequest(
            destination=args.destination,
            budget=args.budget,
            duration=args.duration,
            companions=args.companions,
            interests=[i.strip() for i in args.interests.split(",") if i.strip()],
        )
    except ValidationError as e:
        print(f"Invalid trip request: {e}", file=sys.stderr)
        return 2

    print(f"Planning {request.duration} days in {request.destination}...")
    try:
        async with ProgressTicker(lambda p: print(f"  {p}%")):
            itinerary = await store.create_itinerary(request)
    except TripPlannerError as e:
        print(f"Failed to create itinerary. Please try again. ({e})", file=sys.stderr)
        return 1

    print_itinerary(itinerary)

    if args.save_user:
        await connect_to_mongo()
        try:
            itinerary_id = await store.save_itinerary(args.save_user)
            print(f"\nSaved itinerary {itinerary_id}")
        finally:
            await close_mongo_connection()

    if not args.no_chat:
        await chat_loop(store)
    return 0


def run_suggest(args: argparse.Namespace) -> int:
    for name in filter_countries(args.text):
        print(name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="trip-planner")
    sub = p.add_subparsers(dest="command", required=True)

    plan = sub.add_parser("plan", help="generate an itinerary")
    plan.add_argument("--destination", "--dest", required=True)
    plan.add_argument("--budget", type=float, required=True)
    plan.add_argument("--duration", type=int, required=True)
    plan.add_argument("--companions", choices=COMPANIONS, default="solo")
    plan.add_argument("--interests", default="", help="comma separated tags")
    plan.add_argument("--save-user", help="save the itinerary for this user id")
    plan.add_argument("--no-chat", action="store_true")

    suggest = sub.add_parser("suggest", help="suggest destination countries")
    suggest.add_argument("text")
    return p


def main(argv=None) -> int:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    args = build_parser().parse_args(argv)
    if args.command == "plan":
        return asyncio.run(run_plan(args))
    return run_suggest(args)


if __name__ == "__main__":
    sys.exit(main())
