from server import cli
from server.schemas.itinerary_schema import GeneratedItinerary
from server.utils.errors import UpstreamError


def test_suggest_prints_matches(capsys):
    assert cli.main(["suggest", "ind"]) == 0
    assert capsys.readouterr().out.split() == ["India", "Indonesia"]


def test_plan_prints_itinerary(monkeypatch, capsys):
    async def fake_create(self, request, cancel_event=None):
        self.current_itinerary = GeneratedItinerary(
            destination=request.destination, budget=request.budget, duration=request.duration,
            companions=request.companions, interests=list(request.interests),
            dayPlans=[{"day": 1, "date": "May 1", "activities": [
                {"time": "09:00 AM", "title": "Walking tour", "location": "Lima", "cost": 20}]}],
            hotels=[{"name": "Miraflores Inn", "price": 80, "rating": 4.1, "location": "Lima"}],
            totalCost=2700,
        )
        return self.current_itinerary

    monkeypatch.setattr(cli.ItineraryStore, "create_itinerary", fake_create)

    code = cli.main(["plan", "--destination", "Peru", "--budget", "2500", "--duration", "1",
                     "--companions", "friends", "--interests", "food, hiking", "--no-chat"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Your 1-Day Trip to Peru" in out
    assert "Walking tour" in out
    assert "Miraflores Inn" in out
    assert "Over budget" in out
    assert "100%" in out


def test_plan_failure_exits_nonzero(monkeypatch, capsys):
    async def failing_create(self, request, cancel_event=None):
        raise UpstreamError("DeepSeek API error: overloaded", 503)

    monkeypatch.setattr(cli.ItineraryStore, "create_itinerary", failing_create)

    code = cli.main(["plan", "--destination", "Peru", "--budget", "2500", "--duration", "3", "--no-chat"])

    assert code == 1
    assert "Failed to create itinerary. Please try again." in capsys.readouterr().err


def test_plan_rejects_invalid_request(capsys):
    code = cli.main(["plan", "--destination", "Peru", "--budget", "-5", "--duration", "3", "--no-chat"])
    assert code == 2
    assert "Invalid trip request" in capsys.readouterr().err
