import asyncio

import httpx
import pytest

from conftest import RecordingModel, completion_body, make_client
from server.agents.itinerary_agent.llm_client import call_chat_completion
from server.utils.errors import LLMTimeoutError, TransportError, UpstreamError


def test_returns_first_choice_text():
    model = RecordingModel("hello there")
    text = asyncio.run(call_chat_completion("hi", client=make_client(model)))

    assert text == "hello there"
    body = model.requests[0]["body"]
    assert body["model"] == "deepseek-chat"
    assert body["temperature"] == 0.7
    assert body["max_tokens"] == 1000


def test_error_status_uses_provider_message():
    model = RecordingModel(status_code=500, error_body={"error": {"message": "model overloaded"}})
    with pytest.raises(UpstreamError) as exc:
        asyncio.run(call_chat_completion("hi", client=make_client(model)))

    assert exc.value.status_code == 500
    assert "model overloaded" in str(exc.value)
    assert model.calls == 1


def test_error_status_without_body_uses_reason_phrase():
    model = RecordingModel(status_code=503)
    with pytest.raises(UpstreamError) as exc:
        asyncio.run(call_chat_completion("hi", client=make_client(model)))

    assert exc.value.status_code == 503
    assert "Service Unavailable" in str(exc.value)


def test_unauthorized_is_an_upstream_error():
    model = RecordingModel(status_code=401, error_body={"error": {"message": "Authentication Fails"}})
    with pytest.raises(UpstreamError, match="Authentication Fails"):
        asyncio.run(call_chat_completion("hi", client=make_client(model)))


def test_transport_timeout_maps_to_timeout_error():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(LLMTimeoutError):
        asyncio.run(call_chat_completion("hi", client=make_client(handler)))


def test_overall_timeout_maps_to_timeout_error():
    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json=completion_body("late"))

    with pytest.raises(LLMTimeoutError):
        asyncio.run(call_chat_completion("hi", timeout=0.05, client=make_client(handler)))


def test_connection_failure_maps_to_transport_error():
    def handler(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    with pytest.raises(TransportError):
        asyncio.run(call_chat_completion("hi", client=make_client(handler)))


def test_empty_choices_is_an_upstream_error():
    def handler(request):
        return httpx.Response(200, json=dict(completion_body(""), choices=[]))

    with pytest.raises(UpstreamError, match="no choices"):
        asyncio.run(call_chat_completion("hi", client=make_client(handler)))


def test_timeout_error_is_still_a_timeout():
    assert issubclass(LLMTimeoutError, TimeoutError)
