import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from openai import AsyncOpenAI

from server.agents.chat_agent.formatter import format_bot_response
from server.agents.itinerary_agent.llm_client import call_chat_completion
from server.schemas.chat_schema import ChatMessage
from server.schemas.itinerary_schema import GeneratedItinerary

logger = logging.getLogger(__name__)

GREETING = "Hello! I can help answer questions about your trip itinerary. What would you like to know?"
NO_ITINERARY_MESSAGE = (
    "I don't have access to your itinerary details yet. Please create an itinerary first."
)
APOLOGY_MESSAGE = "Sorry, I encountered an error processing your request. Please try again."

# Stand-in "thinking" pause before the no-itinerary reply
NO_ITINERARY_DELAY_SECONDS = 1.0

QA_TEMPERATURE = 0.7
QA_MAX_TOKENS = 1000


def build_question_prompt(question: str, itinerary: GeneratedItinerary) -> str:
    context = json.dumps(itinerary.to_wire(), separators=(",", ":"), ensure_ascii=False)
    return (
        "You are a helpful travel assistant. The user has the following travel itinerary:\n"
        f"{context}\n"
        "\n"
        f'The user is asking: "{question}"\n'
        "\n"
        "Please provide a helpful, accurate, and concise answer based only on the itinerary information above."
    )


async def answer_question(
    question: str,
    itinerary: Optional[GeneratedItinerary],
    *,
    client: Optional[AsyncOpenAI] = None,
    no_itinerary_delay: float = NO_ITINERARY_DELAY_SECONDS,
) -> str:
    """
    Answer a follow-up question about the itinerary.

    Always resolves with some text: model failures turn into an apology so the
    chat transcript stays a plain sequence of replies.
    """
    if itinerary is None:
        await asyncio.sleep(no_itinerary_delay)
        return NO_ITINERARY_MESSAGE

    try:
        answer = await call_chat_completion(
            build_question_prompt(question, itinerary),
            temperature=QA_TEMPERATURE,
            max_tokens=QA_MAX_TOKENS,
            client=client,
        )
    except Exception as e:
        logger.error("Error answering question: %s", e)
        return APOLOGY_MESSAGE

    if not answer.strip():
        logger.warning("Model returned an empty answer for %r", question)
        return APOLOGY_MESSAGE
    return answer


class ChatSession:
    """
    Append-only transcript for one chat panel. Lives in memory only.

    `itinerary_source` is read on every message so answers always use the
    itinerary that is current at the time of the question.
    """

    def __init__(self, itinerary_source: Callable[[], Optional[GeneratedItinerary]],
                 client: Optional[AsyncOpenAI] = None,
                 no_itinerary_delay: float = NO_ITINERARY_DELAY_SECONDS):
        self.id = uuid.uuid4().hex
        self.itinerary_source = itinerary_source
        self.client = client
        self.no_itinerary_delay = no_itinerary_delay
        self.messages: List[ChatMessage] = [self._message(GREETING, "assistant")]

    def _message(self, content: str, sender: str) -> ChatMessage:
        return ChatMessage(id=uuid.uuid4().hex, content=content, sender=sender, timestamp=datetime.now(timezone.utc))

    async def send(self, text: str) -> Optional[ChatMessage]:
        if not text or not text.strip():
            return None

        self.messages.append(self._message(text, "user"))
        itinerary = self.itinerary_source()
        answer = await answer_question(
            text, itinerary, client=self.client, no_itinerary_delay=self.no_itinerary_delay
        )
        if itinerary is not None:
            answer = format_bot_response(answer)

        reply = self._message(answer, "assistant")
        self.messages.append(reply)
        return reply
