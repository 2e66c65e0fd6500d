"""
OpenRouter completion client.

OpenRouter exposes an OpenAI-compatible chat-completions API, so this client
drives the OpenAI async SDK against the OpenRouter base URL and adds the
attribution headers OpenRouter expects.

Example:
    from common.ai import OpenRouterClient

    client = OpenRouterClient(api_key="sk-or-...", model="openai/gpt-4o-mini")
    result = await client.complete([{"role": "user", "content": "Hello"}])
    print(result.text)
"""

import logging
from typing import Optional, List, Dict, Any

import httpx
import openai
from openai import AsyncOpenAI

from common.ai.base import CompletionClient, CompletionOptions, CompletionResult
from common.ai.errors import (
    CompletionError,
    AuthError,
    RateLimitError,
    UpstreamError,
    CompletionTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterClient(CompletionClient):
    """
    OpenRouter chat-completions client.

    Credentials and defaults are fixed at construction; the instance is
    shared process-wide and never mutated afterwards.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "openai/gpt-4o-mini",
        base_url: str = DEFAULT_BASE_URL,
        site_url: Optional[str] = None,
        site_name: Optional[str] = None,
        defaults: Optional[CompletionOptions] = None,
        timeout: float = 60.0,
        status_timeout: float = 5.0,
        max_retries: int = 2,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            model: Default model identifier
            base_url: API base URL
            site_url: Sent as HTTP-Referer for OpenRouter attribution
            site_name: Sent as X-Title for OpenRouter attribution
            defaults: Default generation parameters
            timeout: Default request timeout in seconds
            status_timeout: Timeout for the liveness probe
            max_retries: SDK-level retries for transient failures
            http_client: Optional pre-built httpx client (tests)
        """
        if not api_key:
            raise ValueError("OpenRouter API key is not configured")

        headers: Dict[str, str] = {}
        if site_url:
            headers["HTTP-Referer"] = site_url
        if site_name:
            headers["X-Title"] = site_name

        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            max_retries=max_retries,
            timeout=timeout,
            default_headers=headers or None,
            http_client=http_client,
        )
        self._model = model
        self._defaults = defaults or CompletionOptions(
            temperature=0.7,
            max_tokens=1000,
            top_p=0.9,
            frequency_penalty=0.1,
            presence_penalty=0.1,
        )
        self._timeout = timeout
        self._status_timeout = status_timeout

    @property
    def model(self) -> str:
        return self._model

    def _build_params(
        self,
        messages: List[Dict[str, str]],
        options: CompletionOptions,
    ) -> Dict[str, Any]:
        """Merge request options over configured defaults."""
        defaults = self._defaults
        params: Dict[str, Any] = {
            "model": options.model or self._model,
            "messages": messages,
        }

        for key in ["temperature", "max_tokens", "top_p", "frequency_penalty", "presence_penalty"]:
            value = getattr(options, key)
            if value is None:
                value = getattr(defaults, key)
            if value is not None:
                params[key] = value

        params["timeout"] = options.timeout or self._timeout
        return params

    async def complete(
        self,
        messages: List[Dict[str, str]],
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult:
        """Send a chat completion request to OpenRouter."""
        params = self._build_params(messages, options or CompletionOptions())

        logger.info(
            f"OpenRouter chat completion request: model={params['model']} "
            f"messages={len(messages)} temperature={params.get('temperature')} "
            f"max_tokens={params.get('max_tokens')}"
        )

        try:
            response = await self.client.chat.completions.create(**params)
        except Exception as e:
            raise self._map_error(e, "chat completion")

        if not response.choices:
            raise UpstreamError("OpenRouter returned no choices")

        choice = response.choices[0]
        usage = response.usage.model_dump() if response.usage else {}

        logger.info(
            f"OpenRouter chat completion response: id={response.id} model={response.model} "
            f"finish_reason={choice.finish_reason} usage={usage}"
        )

        return CompletionResult(
            text=choice.message.content or "",
            finish_reason=choice.finish_reason,
            model=response.model,
            usage=usage,
        )

    async def list_models(self) -> List[Dict[str, Any]]:
        """Get models available through OpenRouter."""
        try:
            page = await self.client.models.list()
        except Exception as e:
            raise self._map_error(e, "listing models")
        return [model.model_dump() for model in page.data]

    async def check_status(self) -> bool:
        """Probe the models endpoint with a short timeout."""
        try:
            await self.client.with_options(
                timeout=self._status_timeout,
                max_retries=0,
            ).models.list()
            return True
        except Exception as e:
            logger.error(f"OpenRouter API status check failed: {e}")
            return False

    def _map_error(self, error: Exception, operation: str) -> CompletionError:
        """Translate SDK exceptions into typed completion failures."""
        if isinstance(error, CompletionError):
            return error

        if isinstance(error, openai.APITimeoutError):
            logger.error(f"OpenRouter {operation} timed out")
            return CompletionTimeoutError(f"OpenRouter {operation} timed out")

        if isinstance(error, openai.APIConnectionError):
            logger.error(f"OpenRouter {operation} connection error: {error}")
            return UpstreamError(f"Could not reach OpenRouter: {error}")

        if isinstance(error, openai.APIStatusError):
            status = error.status_code
            logger.error(f"OpenRouter {operation} error: status={status} message={error.message}")

            if status in (401, 403):
                return AuthError("Invalid OpenRouter API key", status_code=status)
            if status == 429:
                return RateLimitError("OpenRouter rate limit exceeded", status_code=status)
            if status >= 500:
                return UpstreamError(f"OpenRouter server error: {error.message}", status_code=status)
            return UpstreamError(error.message, status_code=status)

        logger.error(f"OpenRouter {operation} unexpected error: {error!r}")
        return UpstreamError(f"Unexpected error: {error}")
