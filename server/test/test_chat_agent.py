import asyncio

import httpx

from conftest import RecordingModel, make_client
from server.agents.chat_agent.chat_agent import (
    APOLOGY_MESSAGE,
    GREETING,
    NO_ITINERARY_MESSAGE,
    ChatSession,
    answer_question,
    build_question_prompt,
)


def test_no_itinerary_gets_canned_reply_without_model_call():
    model = RecordingModel("should not be used")
    answer = asyncio.run(answer_question("Where do I stay?", None, client=make_client(model),
                                         no_itinerary_delay=0))

    assert answer == NO_ITINERARY_MESSAGE
    assert model.calls == 0


def test_question_prompt_embeds_itinerary_and_question(itinerary):
    prompt = build_question_prompt("Where do I stay?", itinerary)

    assert '"Where do I stay?"' in prompt
    assert "Casa Andina" in prompt
    assert '"totalCost":1800' in prompt
    assert "based only on the itinerary information above" in prompt


def test_answer_uses_model(itinerary):
    model = RecordingModel("You stay at Casa Andina.")
    answer = asyncio.run(answer_question("Where do I stay?", itinerary, client=make_client(model)))

    assert answer == "You stay at Casa Andina."
    body = model.requests[0]["body"]
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 1000


def test_model_failure_becomes_apology(itinerary):
    model = RecordingModel(status_code=500, error_body={"error": {"message": "boom"}})
    answer = asyncio.run(answer_question("Anything?", itinerary, client=make_client(model)))
    assert answer == APOLOGY_MESSAGE


def test_network_failure_becomes_apology(itinerary):
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    answer = asyncio.run(answer_question("Anything?", itinerary, client=make_client(handler)))
    assert answer == APOLOGY_MESSAGE


def test_blank_model_answer_becomes_apology(itinerary):
    model = RecordingModel("   ")
    answer = asyncio.run(answer_question("Anything?", itinerary, client=make_client(model)))
    assert answer == APOLOGY_MESSAGE


def test_session_starts_with_greeting():
    session = ChatSession(itinerary_source=lambda: None)
    assert len(session.messages) == 1
    assert session.messages[0].sender == "assistant"
    assert session.messages[0].content == GREETING
    assert session.messages[0].timestamp.tzinfo is not None


def test_session_formats_model_answers(itinerary):
    model = RecordingModel("**Day 1**:\n1. Plaza walk\n(Cusco) dinner")
    session = ChatSession(itinerary_source=lambda: itinerary, client=make_client(model))

    reply = asyncio.run(session.send("What happens on day 1?"))

    assert reply.content == "Day 1:\n• Plaza walk\n• Cusco: dinner"
    assert [m.sender for m in session.messages] == ["assistant", "user", "assistant"]
    assert session.messages[1].content == "What happens on day 1?"


def test_session_ignores_blank_input():
    session = ChatSession(itinerary_source=lambda: None, no_itinerary_delay=0)
    assert asyncio.run(session.send("   ")) is None
    assert len(session.messages) == 1


def test_session_reads_current_itinerary_each_time(itinerary):
    current = {"itinerary": None}
    model = RecordingModel("Casa Andina")
    session = ChatSession(itinerary_source=lambda: current["itinerary"], client=make_client(model),
                          no_itinerary_delay=0)

    first = asyncio.run(session.send("Hotel?"))
    current["itinerary"] = itinerary
    second = asyncio.run(session.send("Hotel?"))

    assert first.content == NO_ITINERARY_MESSAGE
    assert second.content == "Casa Andina"
    assert model.calls == 1
