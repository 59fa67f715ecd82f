from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

import httpx
from google import genai
from google.genai import errors, types
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

"""Boundary to the external text-generation service.

The pipeline only depends on the TextGenerationService protocol:
``generate(request) -> response`` and ``count_tokens(model, content) -> int``.
GeminiGenerationService implements it with the google-genai async client.

Transient upstream failures (HTTP 429/408/5xx, transport errors, empty
replies) are retried a small fixed number of times here and nowhere else.
Anything that comes back is returned as text; parsing it is the caller's job.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ExternalServiceFailure",
    "TokenUsage",
    "GenerationRequest",
    "GenerationResponse",
    "TextGenerationService",
    "GeminiGenerationService",
    "DEFAULT_MAX_ATTEMPTS",
]

DEFAULT_MAX_ATTEMPTS = 3
_RETRYABLE_CODES = frozenset({408, 429})
# Anything else (TypeError, AttributeError, ...) is a bug and propagates unwrapped
_TRANSPORT_ERRORS = (httpx.TransportError, ConnectionError, TimeoutError)

T = TypeVar("T")


class ExternalServiceFailure(Exception):
    """Opaque failure of the generation service."""

    def __init__(self, message: str, *, retryable: bool = False, code: int | None = None) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.code = code


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    reasoning_tokens: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            reasoning_tokens=self.reasoning_tokens + other.reasoning_tokens,
        )


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    model_id: str
    system_instructions: str = ""
    temperature: float = 0.0


@dataclass(frozen=True)
class GenerationResponse:
    text: str
    usage: TokenUsage = TokenUsage()


class TextGenerationService(Protocol):
    async def generate(self, request: GenerationRequest) -> GenerationResponse: ...

    async def count_tokens(self, model_id: str, content: str) -> int: ...


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ExternalServiceFailure) and exc.retryable


class GeminiGenerationService:
    """google-genai backed TextGenerationService."""

    def __init__(
        self,
        api_key: str,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        client: Any = None,
        wait: wait_base | None = None,
    ) -> None:
        self._client = client if client is not None else genai.Client(api_key=api_key)
        self._max_attempts = max_attempts
        self._wait = wait if wait is not None else wait_exponential(multiplier=1, min=1, max=30)

    async def _with_retry(self, op: str, call: Callable[[], Awaitable[T]]) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception(_is_retryable),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return await retrying(self._translate_errors, op, call)

    @staticmethod
    async def _translate_errors(op: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await call()
        except ExternalServiceFailure:
            raise
        except errors.APIError as e:
            code = getattr(e, "code", None)
            retryable = isinstance(e, errors.ServerError) or code in _RETRYABLE_CODES
            raise ExternalServiceFailure(f"{op}: {e}", retryable=retryable, code=code) from e
        except _TRANSPORT_ERRORS as e:
            raise ExternalServiceFailure(f"{op}: {type(e).__name__}: {e}", retryable=True) from e

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        config = types.GenerateContentConfig(
            system_instruction=request.system_instructions or None,
            temperature=request.temperature,
        )

        async def call() -> GenerationResponse:
            response = await self._client.aio.models.generate_content(
                model=request.model_id,
                contents=request.prompt,
                config=config,
            )
            text = getattr(response, "text", None)
            if not text:
                raise ExternalServiceFailure("generate: empty response", retryable=True)
            return GenerationResponse(text=text, usage=_usage_of(response))

        return await self._with_retry("generate", call)

    async def count_tokens(self, model_id: str, content: str) -> int:
        async def call() -> int:
            response = await self._client.aio.models.count_tokens(model=model_id, contents=content)
            return int(getattr(response, "total_tokens", 0) or 0)

        return await self._with_retry("count_tokens", call)


def _usage_of(response: Any) -> TokenUsage:
    meta = getattr(response, "usage_metadata", None)
    if meta is None:
        return TokenUsage()
    return TokenUsage(
        input_tokens=getattr(meta, "prompt_token_count", 0) or 0,
        output_tokens=getattr(meta, "candidates_token_count", 0) or 0,
        reasoning_tokens=getattr(meta, "thoughts_token_count", 0) or 0,
    )
