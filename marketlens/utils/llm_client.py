"""
LLM Gateway with Cross-Vendor Fallback
Sends one (system, user) prompt to a vendor and returns the completion text.

A failed primary call is retried exactly once on the other vendor with that
vendor's default model. There is no third attempt and the primary is never
called twice.
"""
import asyncio
import re
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Optional

from loguru import logger
from pydantic_ai import Agent
from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.anthropic import AnthropicProvider
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from marketlens.config import Settings, get_settings
from marketlens.core.prompt_builder import PromptPair
from marketlens.utils.observability import log_llm_call


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LLMError(Exception):
    """A single vendor attempt failed (timeout, HTTP error, empty completion, missing key)."""
    pass


class GenerationUnavailable(Exception):
    """Both the primary and the fallback vendor failed."""

    def __init__(self, message: str, provider: Optional[str] = None, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.provider = provider
        self.errors = errors or []


@dataclass(frozen=True)
class Completion:
    text: str
    provider: str
    model_name: str
    used_fallback: bool
    duration_ms: float


# Dated snapshots ("-20240620", "-2024-08-06") and "-latest" aliases
_MODEL_SUFFIX = re.compile(r"-(?:\d{8}|\d{4}-\d{2}-\d{2}|latest)$")

AgentFactory = Callable[[Provider, str, str, str], Agent]


def normalize_model_name(model_name: str) -> str:
    """
    Strip version/date suffixes from a model identifier.

    Example:
        >>> normalize_model_name("claude-3-5-sonnet-20240620")
        'claude-3-5-sonnet'
    """
    name = model_name.strip()
    while True:
        stripped = _MODEL_SUFFIX.sub("", name)
        if stripped == name or not stripped:
            return name
        name = stripped


def categorize_error(error: BaseException) -> str:
    """Coarse error category for logs."""
    if isinstance(error, asyncio.TimeoutError):
        return "timeout"

    error_msg = str(error).lower()
    if "rate" in error_msg and "limit" in error_msg:
        return "rate_limit"
    if "timeout" in error_msg or "timed out" in error_msg:
        return "timeout"
    if any(code in error_msg for code in ["500", "502", "503", "504", "overloaded"]):
        return "server_error"
    if "authentication" in error_msg or "api key" in error_msg or "401" in error_msg:
        return "auth"
    if "invalid" in error_msg and "request" in error_msg:
        return "invalid_request"
    return "unknown"


def build_agent(provider: Provider, model_name: str, api_key: str, system_prompt: str) -> Agent:
    """Plain-text PydanticAI agent for one vendor/model pair."""
    if provider == Provider.OPENAI:
        model = OpenAIChatModel(model_name, provider=OpenAIProvider(api_key=api_key))
    else:
        model = AnthropicModel(model_name, provider=AnthropicProvider(api_key=api_key))

    return Agent(model, instructions=system_prompt, output_type=str)


class LLMGateway:
    """
    Vendor-neutral completion gateway.

    Credentials and defaults come from Settings; there are no module-level
    clients. `agent_factory` exists so tests can swap in fake agents.
    """

    def __init__(self, settings: Settings | None = None, agent_factory: AgentFactory | None = None):
        self.settings = settings or get_settings()
        self.agent_factory = agent_factory or build_agent

    def default_model_for(self, provider: Provider) -> str:
        if provider == Provider.OPENAI:
            return self.settings.openai_model
        return self.settings.anthropic_model

    def api_key_for(self, provider: Provider) -> Optional[str]:
        if provider == Provider.OPENAI:
            return self.settings.openai_api_key
        return self.settings.anthropic_api_key

    @staticmethod
    def fallback_for(provider: Provider) -> Provider:
        return Provider.ANTHROPIC if provider == Provider.OPENAI else Provider.OPENAI

    async def _attempt(
        self,
        provider: Provider,
        model_name: str,
        prompt: PromptPair,
        used_fallback: bool,
    ) -> Completion:
        model_name = normalize_model_name(model_name) or self.default_model_for(provider)
        prompt_chars = len(prompt.system) + len(prompt.user)
        start_time = time.perf_counter()

        try:
            api_key = self.api_key_for(provider)
            if not api_key:
                raise LLMError(f"No API key configured for {provider.value}")

            agent = self.agent_factory(provider, model_name, api_key, prompt.system)
            result = await asyncio.wait_for(
                agent.run(
                    prompt.user,
                    model_settings=ModelSettings(
                        max_tokens=self.settings.llm_max_tokens,
                        temperature=self.settings.llm_temperature,
                    ),
                ),
                timeout=self.settings.llm_timeout_seconds,
            )
            text = result.output or ""
            if not text.strip():
                raise LLMError(f"Empty completion from {provider.value}/{model_name}")

        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            error_type = categorize_error(e)
            message = str(e) or f"{error_type} after {duration_ms:.0f}ms"
            log_llm_call(
                provider=provider.value,
                model=model_name,
                duration_ms=duration_ms,
                prompt_chars=prompt_chars,
                used_fallback=used_fallback,
                success=False,
                error=f"{error_type}: {message}",
            )
            if isinstance(e, LLMError):
                raise
            raise LLMError(f"{provider.value} call failed ({error_type}): {message}") from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        log_llm_call(
            provider=provider.value,
            model=model_name,
            duration_ms=duration_ms,
            prompt_chars=prompt_chars,
            completion_chars=len(text),
            used_fallback=used_fallback,
        )
        return Completion(
            text=text,
            provider=provider.value,
            model_name=model_name,
            used_fallback=used_fallback,
            duration_ms=duration_ms,
        )

    async def generate(
        self,
        prompt: PromptPair,
        provider: str | None = None,
        model_name: str | None = None,
    ) -> Completion:
        """
        Run the prompt against the primary vendor, falling back once.

        Args:
            prompt: System and user strings
            provider: "openai" or "anthropic" (defaults to settings.default_provider)
            model_name: Primary model; the fallback always uses its vendor's default

        Returns:
            Completion with the text and which vendor/model produced it

        Raises:
            GenerationUnavailable: Both attempts failed; carries the last error
            ValueError: Unknown provider name
        """
        primary = Provider(provider or self.settings.default_provider)
        primary_model = model_name or self.default_model_for(primary)

        try:
            return await self._attempt(primary, primary_model, prompt, used_fallback=False)
        except LLMError as primary_error:
            secondary = self.fallback_for(primary)
            logger.warning(f"🛟 {primary.value} failed, falling back to {secondary.value}: {primary_error}")

            try:
                return await self._attempt(
                    secondary,
                    self.default_model_for(secondary),
                    prompt,
                    used_fallback=True,
                )
            except LLMError as fallback_error:
                logger.error(f"❌ Both vendors failed. Last error: {fallback_error}")
                raise GenerationUnavailable(
                    str(fallback_error),
                    provider=secondary.value,
                    errors=[str(primary_error), str(fallback_error)],
                ) from fallback_error

    async def complete(
        self,
        prompt: PromptPair,
        provider: str | None = None,
        model_name: str | None = None,
    ) -> str:
        """Completion text only."""
        completion = await self.generate(prompt, provider=provider, model_name=model_name)
        return completion.text
