"""
Abstract completion client interface.

Defines the contract that text-completion providers must implement, so the
coaching code can be exercised against a fake in tests and swapped between
providers without changes.

Example:
    from common.ai import CompletionClient, CompletionOptions

    async def reply(client: CompletionClient) -> str:
        result = await client.complete(
            [{"role": "user", "content": "Hello"}],
            CompletionOptions(temperature=0.3, max_tokens=200),
        )
        return result.text
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any


@dataclass
class CompletionOptions:
    """Generation parameters for one request. None means provider default."""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    timeout: Optional[float] = None
    model: Optional[str] = None


@dataclass
class CompletionResult:
    """Text returned by a provider."""
    text: str
    finish_reason: Optional[str] = None
    model: Optional[str] = None
    usage: Dict[str, Any] = field(default_factory=dict)


class CompletionClient(ABC):
    """
    Abstract text-completion client.

    Implementations never persist anything; they only perform the network
    call and translate provider failures into common.ai.errors types.
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Default model identifier."""
        pass

    @abstractmethod
    async def complete(
        self,
        messages: List[Dict[str, str]],
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult:
        """
        Run a chat completion.

        Args:
            messages: Ordered [{"role": "system"|"user"|"assistant", "content": "..."}]
            options: Generation parameters; unset fields use configured defaults

        Returns:
            CompletionResult with the generated text

        Raises:
            AuthError, RateLimitError, UpstreamError, CompletionTimeoutError
        """
        pass

    @abstractmethod
    async def list_models(self) -> List[Dict[str, Any]]:
        """
        List models offered by the provider.

        Raises:
            CompletionError subclasses on failure
        """
        pass

    async def check_status(self) -> bool:
        """
        Lightweight liveness probe.

        Returns:
            True if the provider answered; never raises
        """
        try:
            await self.list_models()
            return True
        except Exception:
            return False
