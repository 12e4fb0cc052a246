import asyncio
import logging
from typing import Optional

import openai
from openai import AsyncOpenAI

from server.utils.config import DEEPSEEK_API_KEY, DEEPSEEK_BASE_URL, DEEPSEEK_MODEL
from server.utils.errors import LLMTimeoutError, TransportError, UpstreamError

logger = logging.getLogger(__name__)

_client: Optional[AsyncOpenAI] = None


def get_client() -> AsyncOpenAI:
    """Process-wide client for the DeepSeek chat-completions endpoint.

    Retries are disabled: a failed attempt surfaces to the caller at once.
    """
    global _client
    if _client is None:
        _client = AsyncOpenAI(
            api_key=DEEPSEEK_API_KEY or "",
            base_url=DEEPSEEK_BASE_URL,
            max_retries=0,
        )
    return _client


async def call_chat_completion(
    prompt: str,
    *,
    temperature: float = 0.7,
    max_tokens: int = 1000,
    stream: bool = False,
    timeout: Optional[float] = None,
    client: Optional[AsyncOpenAI] = None,
    model: Optional[str] = None,
) -> str:
    """
    Thin wrapper around an OpenAI-compatible chat completion call.

    Sends a single user message and returns the first choice's text. When
    `timeout` is given the whole call (including reading a streamed body) is
    cancelled once it elapses. Failures are mapped onto LLMTimeoutError,
    UpstreamError and TransportError; nothing is retried.
    """
    client = client or get_client()

    async def _complete() -> str:
        kwargs = {"timeout": timeout} if timeout is not None else {}
        resp = await client.chat.completions.create(
            model=model or DEEPSEEK_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
            stream=stream,
            **kwargs,
        )
        if stream:
            parts = []
            async for chunk in resp:
                if chunk.choices and chunk.choices[0].delta.content:
                    parts.append(chunk.choices[0].delta.content)
            return "".join(parts)
        if not resp.choices:
            raise UpstreamError("DeepSeek API error: response contained no choices")
        text = resp.choices[0].message.content or ""
        logger.debug("Model replied with %d chars: %s", len(text), text[:500])
        return text

    try:
        if timeout is None:
            return await _complete()
        return await asyncio.wait_for(_complete(), timeout)
    except (openai.APITimeoutError, asyncio.TimeoutError) as e:
        raise LLMTimeoutError(f"Model request timed out after {timeout or 'default'}s") from e
    except openai.APIStatusError as e:
        raise UpstreamError(f"DeepSeek API error: {_provider_message(e)}", e.status_code) from e
    except openai.APIConnectionError as e:
        raise TransportError(f"Could not reach the model endpoint: {e}") from e


def _provider_message(err: openai.APIStatusError) -> str:
    # The SDK unwraps {"error": {...}} into err.body when the provider sent one.
    body = err.body
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return err.response.reason_phrase or f"HTTP {err.status_code}"
