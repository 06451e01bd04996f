"""Text-synthesis support package for story analysis and summaries."""

from .client import (  # noqa: F401
    AnthropicClient,
    BaseLLMClient,
    LLMAuthenticationError,
    LLMClientError,
    LLMGenericResult,
    LLMResponse,
    LLMResponseError,
    LLMTimeoutError,
    MistralClient,
    build_llm_client,
)
from .prompt_builder import PromptBuilderError, build_analysis_prompt, build_summary_prompt  # noqa: F401
from .schemas import StoryAnalysisPayload  # noqa: F401

__all__ = [
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
    "PromptBuilderError",
    "build_analysis_prompt",
    "build_summary_prompt",
    "StoryAnalysisPayload",
]
