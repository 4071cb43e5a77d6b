"""Planner client: one chat-completions round trip to a Groq (OpenAI-compatible) endpoint."""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, Field, ValidationError

from phonepilot.errors import (
    ConfigurationError,
    EmptyResponseError,
    MalformedResponseError,
    PlannerRequestError,
)
from phonepilot.planner.prompts import ChatMessage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.groq.com/"
CHAT_COMPLETIONS_PATH = "openai/v1/chat/completions"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_TOKENS = 2048


class ResponseFormat(BaseModel):
    type: str = "json_object"


class ChatCompletionRequest(BaseModel):
    model: str
    messages: list[ChatMessage]
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    response_format: ResponseFormat | None = Field(default_factory=ResponseFormat)


class ResponseMessage(BaseModel):
    role: str = "assistant"
    content: str | None = None


class Choice(BaseModel):
    index: int = 0
    message: ResponseMessage
    finish_reason: str | None = None


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    id: str = ""
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage | None = None


class PlannerClient:
    """
    Sends the planner request and returns the raw text of the first choice.

    Decoding is deterministic (low temperature) and the response is
    constrained to a single JSON object. No retries: a failed call surfaces
    to the caller, who may re-issue the whole command.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/"
        self._timeout = httpx.Timeout(timeout_seconds)
        self._temperature = temperature
        self._max_tokens = max_tokens

    @property
    def url(self) -> str:
        return self.base_url + CHAT_COMPLETIONS_PATH

    def plan(self, api_key: str, model: str, messages: list[ChatMessage]) -> str:
        """Return the first choice's message content for the given conversation."""
        if not api_key or not api_key.strip():
            raise ConfigurationError("Groq API key not configured")

        request = ChatCompletionRequest(
            model=model,
            messages=messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        logger.debug("Sending request to planner", extra={"model": model, "messages": len(messages)})
        try:
            with httpx.Client(timeout=self._timeout) as client:
                r = client.post(
                    self.url,
                    headers={"Authorization": f"Bearer {api_key}"},
                    json=request.model_dump(),
                )
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise PlannerRequestError(
                f"Planner returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise PlannerRequestError(f"Planner request failed: {e}") from e
        except ValueError as e:
            raise MalformedResponseError("Planner response body is not JSON") from e

        try:
            response = ChatCompletionResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError("Unexpected planner response shape") from e

        if response.usage is not None:
            logger.info(
                "Planner call completed",
                extra={
                    "response_id": response.id,
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                },
            )
        if not response.choices or response.choices[0].message.content is None:
            raise EmptyResponseError("Empty response from API")
        content = response.choices[0].message.content
        logger.debug("Planner response: %s", content)
        return content
