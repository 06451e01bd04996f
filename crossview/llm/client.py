"""Text-synthesis client implementations used for story analysis and summaries."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from crossview.core.config import Settings, get_settings
from crossview.core.logging import get_logger

T = TypeVar("T", bound=BaseModel)

logger = get_logger(__name__)

ANALYST_SYSTEM_PROMPT = (
    "You are an expert media analyst who identifies the perspectives and bias in news "
    "coverage and answers strictly in the requested format."
)


class LLMClientError(RuntimeError):
    """Base exception for text-synthesis client failures."""


class LLMAuthenticationError(LLMClientError):
    """Raised when credentials are missing or rejected by the provider."""


class LLMTimeoutError(LLMClientError):
    """Raised when the provider request exceeds the configured timeout."""


class LLMResponseError(LLMClientError):
    """Raised when the provider returns an invalid or unexpected response."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


@dataclass(slots=True)
class LLMResponse:
    """Plain text response without structured validation."""

    provider: str
    model: str
    content: str
    usage: Dict[str, Any] | None = None


@dataclass(slots=True)
class LLMGenericResult(Generic[T]):
    """Structured result validated against a Pydantic schema."""

    provider: str
    model: str
    payload: T
    raw_content: str
    valid: bool = True
    usage: Dict[str, Any] | None = None


def _strip_markdown_fences(content: str) -> str:
    """Remove optional markdown code fences from model responses."""

    stripped = content.strip()
    if not stripped.startswith("```"):
        return stripped

    without_ticks = stripped[3:]
    if without_ticks.lower().startswith("json"):
        without_ticks = without_ticks[4:]
    without_ticks = without_ticks.strip()
    if without_ticks.endswith("```"):
        without_ticks = without_ticks[:-3]
    return without_ticks.strip()


def extract_json_object(content: str) -> str:
    """Return the outermost ``{...}`` span of a response, ignoring surrounding prose."""

    stripped = _strip_markdown_fences(content)
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end <= start:
        raise LLMResponseError("No JSON object found in response", retryable=False)
    return stripped[start : end + 1]


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, LLMTimeoutError):
        return True
    return isinstance(exc, LLMResponseError) and exc.retryable


class BaseLLMClient(ABC):
    """Shared request, retry and parsing logic for text-synthesis providers."""

    provider: str = "base"

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.transport = transport
        self.log = logger.bind(component=type(self).__name__, provider=self.provider)

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the configured model identifier."""

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Return the provider API root."""

    @abstractmethod
    def _api_key(self) -> Optional[str]:
        """Return the API key from settings, if any."""

    @abstractmethod
    def _headers(self, api_key: str) -> Dict[str, str]:
        """Return request headers carrying the API key."""

    @abstractmethod
    def _path(self) -> str:
        """Return the completion endpoint path."""

    @abstractmethod
    def _build_payload(
        self,
        prompt: str,
        *,
        system: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> Dict[str, Any]:
        """Return the provider-specific request body."""

    @abstractmethod
    def _extract_content(self, data: Dict[str, Any]) -> str:
        """Return the generated text from a decoded response."""

    async def _post_once(self, payload: Dict[str, Any], api_key: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.settings.llm_api_timeout_seconds,
                transport=self.transport,
            ) as client:
                response = await client.post(self._path(), headers=self._headers(api_key), json=payload)
        except httpx.TimeoutException as exc:
            raise LLMTimeoutError(f"{self.provider} request timed out") from exc
        except httpx.RequestError as exc:
            raise LLMResponseError(f"{self.provider} request failed: {exc}", retryable=True) from exc

        if response.status_code in {401, 403}:
            raise LLMAuthenticationError(f"{self.provider} rejected the API key")
        if response.status_code == 429 or response.status_code >= 500:
            raise LLMResponseError(f"{self.provider} returned status {response.status_code}", retryable=True)
        if response.status_code >= 400:
            raise LLMResponseError(
                f"{self.provider} returned status {response.status_code}: {response.text[:200]}",
                retryable=False,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise LLMResponseError(f"{self.provider} returned invalid JSON", retryable=True) from exc

    async def _request(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        api_key = self._api_key()
        if not api_key:
            raise LLMAuthenticationError(f"{self.provider} API key is not configured")

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.settings.llm_max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    self.log.warning("llm_call_retry", attempt=attempt.retry_state.attempt_number)
                return await self._post_once(payload, api_key)
        raise LLMResponseError(f"{self.provider} call did not complete")  # pragma: no cover

    async def generate_text(
        self,
        prompt: str,
        *,
        system: str = ANALYST_SYSTEM_PROMPT,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Generate a plain text completion."""

        payload = self._build_payload(
            prompt,
            system=system,
            temperature=self.settings.llm_temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.settings.llm_max_tokens,
            json_mode=json_mode,
        )
        data = await self._request(payload)
        try:
            content = self._extract_content(data)
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMResponseError(f"Incomplete response from {self.provider}", retryable=False) from exc

        self.log.info("llm_call_complete", model=self.model_name, characters=len(content))
        return LLMResponse(
            provider=self.provider,
            model=self.model_name,
            content=content,
            usage=data.get("usage"),
        )

    async def generate_json(
        self,
        prompt: str,
        schema_class: Type[T],
        *,
        fallback_on_invalid: bool = False,
    ) -> LLMGenericResult[T]:
        """
        Generate a JSON response validated against ``schema_class``.

        With ``fallback_on_invalid`` a malformed or schema-violating answer yields an
        empty ``schema_class()`` marked ``valid=False`` instead of raising.
        """

        response = await self.generate_text(prompt, json_mode=True)
        try:
            payload = schema_class.model_validate_json(extract_json_object(response.content))
            valid = True
        except (LLMResponseError, ValidationError, json.JSONDecodeError) as exc:
            if not fallback_on_invalid:
                raise LLMResponseError(f"Response failed validation: {str(exc)[:200]}") from exc
            self.log.warning("llm_payload_invalid", error=str(exc)[:200])
            payload = schema_class()
            valid = False

        return LLMGenericResult(
            provider=response.provider,
            model=response.model,
            payload=payload,
            raw_content=response.content,
            valid=valid,
            usage=response.usage,
        )


class AnthropicClient(BaseLLMClient):
    """Async client for the Anthropic Messages API."""

    provider = "anthropic"
    api_version = "2023-06-01"

    @property
    def model_name(self) -> str:
        return self.settings.anthropic_model

    @property
    def base_url(self) -> str:
        return self.settings.anthropic_base_url.rstrip("/")

    def _api_key(self) -> Optional[str]:
        return self.settings.anthropic_api_key

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": self.api_version,
            "content-type": "application/json",
        }

    def _path(self) -> str:
        return "/messages"

    def _build_payload(
        self,
        prompt: str,
        *,
        system: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> Dict[str, Any]:
        return {
            "model": self.model_name,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _extract_content(self, data: Dict[str, Any]) -> str:
        blocks = data["content"]
        return "".join(block.get("text", "") for block in blocks if block.get("type") == "text")


class MistralClient(BaseLLMClient):
    """Async client for the Mistral chat completion API (OpenAI-compatible)."""

    provider = "mistral"

    @property
    def model_name(self) -> str:
        return self.settings.mistral_model

    @property
    def base_url(self) -> str:
        return self.settings.mistral_base_url.rstrip("/")

    def _api_key(self) -> Optional[str]:
        return self.settings.mistral_api_key

    def _headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _path(self) -> str:
        return "/chat/completions"

    def _build_payload(
        self,
        prompt: str,
        *,
        system: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model_name,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def _extract_content(self, data: Dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"]


def build_llm_client(settings: Settings | None = None) -> BaseLLMClient:
    """Return the client for the configured provider."""

    settings = settings or get_settings()
    provider = settings.llm_provider.strip().lower()
    if provider == "mistral":
        return MistralClient(settings=settings)
    if provider != "anthropic":
        logger.warning("unknown_llm_provider_falling_back", provider=provider)
    return AnthropicClient(settings=settings)


__all__ = [
    "ANALYST_SYSTEM_PROMPT",
    "AnthropicClient",
    "BaseLLMClient",
    "LLMAuthenticationError",
    "LLMClientError",
    "LLMGenericResult",
    "LLMResponse",
    "LLMResponseError",
    "LLMTimeoutError",
    "MistralClient",
    "build_llm_client",
    "extract_json_object",
]
