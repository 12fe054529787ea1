"""
LLM Gateway - the text-generation collaborator.

Multi-provider support with automatic failover:
1. OpenAI (gpt-4o, JSON mode)
2. Groq (Llama models, OpenAI-compatible, fast free tier)
3. Anthropic (Claude Haiku)

The engine only sees the TextGenerator protocol: give it a system prompt
and a user prompt, get text back or None. Retries and provider failover
happen here, never in the engine.
"""

import logging
import os
from typing import Optional, List, Protocol, Tuple

import httpx

from .error_recovery import RetryConfig, TransientError, retry_with_backoff_async

logger = logging.getLogger(__name__)


# Status codes that should trigger retry
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class TextGenerator(Protocol):
    """Anything that turns a (system, prompt) pair into text."""

    async def generate(
        self,
        system: str,
        prompt: str,
        json_mode: bool = False,
        max_tokens: int = 800,
        temperature: float = 0.7,
    ) -> Optional[str]:
        ...


class LLMGateway:
    """
    Multi-provider LLM client.

    Checks for API keys (fallback order):
    - OPENAI_API_KEY: OpenAI chat completions
    - GROQ_API_KEY: Groq (OpenAI-compatible)
    - ANTHROPIC_API_KEY: Anthropic Messages API
    """

    OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
    GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"
    ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"

    MODELS = {
        "openai": "gpt-4o",
        "groq": "llama-3.1-8b-instant",
        "anthropic": "claude-haiku-4-5-20251001",
    }

    def __init__(
        self,
        request_timeout: float = 15.0,
        retry: Optional[RetryConfig] = None,
        env: Optional[dict] = None,
    ):
        env = os.environ if env is None else env
        self.request_timeout = request_timeout
        self.retry = retry or RetryConfig(max_attempts=2, initial_delay=0.5, max_delay=2.0)

        self._providers: List[Tuple[str, str, str]] = []
        if env.get("OPENAI_API_KEY"):
            self._providers.append(("openai", self.OPENAI_API_URL, env["OPENAI_API_KEY"]))
        if env.get("GROQ_API_KEY"):
            self._providers.append(("groq", self.GROQ_API_URL, env["GROQ_API_KEY"]))
        if env.get("ANTHROPIC_API_KEY"):
            self._providers.append(("anthropic", self.ANTHROPIC_API_URL, env["ANTHROPIC_API_KEY"]))

        if self._providers:
            logger.info("[LLMGateway] Providers configured: %s", ", ".join(p[0] for p in self._providers))
        else:
            logger.info("[LLMGateway] No API keys found - generation disabled")

    @property
    def enabled(self) -> bool:
        """Check if any provider is configured."""
        return len(self._providers) > 0

    @property
    def providers(self) -> List[str]:
        return [name for name, _, _ in self._providers]

    async def generate(
        self,
        system: str,
        prompt: str,
        json_mode: bool = False,
        max_tokens: int = 800,
        temperature: float = 0.7,
    ) -> Optional[str]:
        """
        Generate text, trying providers in priority order.

        Returns:
            Generated text or None if disabled or every provider fails
        """
        if not self.enabled:
            return None

        async with httpx.AsyncClient(timeout=self.request_timeout) as client:
            for provider, url, api_key in self._providers:
                try:
                    if provider == "anthropic":
                        result = await self._call_anthropic(
                            client, api_key, system, prompt, json_mode, max_tokens, temperature)
                    else:
                        result = await self._call_openai_compatible(
                            client, provider, url, api_key, system, prompt,
                            json_mode, max_tokens, temperature)
                    if result:
                        return result
                except Exception as e:
                    logger.warning("[LLMGateway] %s failed: %s", provider, e)
                    continue

        return None

    async def _call_openai_compatible(
        self, client: httpx.AsyncClient, provider: str, url: str, api_key: str,
        system: str, prompt: str, json_mode: bool, max_tokens: int, temperature: float,
    ) -> Optional[str]:
        """Call an OpenAI-compatible chat completions endpoint (OpenAI, Groq)."""
        payload = {
            "model": self.MODELS[provider],
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        async def make_request():
            response = await client.post(
                url,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
            if response.status_code == 200:
                data = response.json()
                choices = data.get("choices", [])
                if not choices or not isinstance(choices, list):
                    logger.warning("[LLMGateway] %s malformed response: no choices", provider)
                    return None
                return (choices[0].get("message", {}).get("content") or "").strip() or None
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise TransientError(f"{provider} retryable HTTP {response.status_code}")
            logger.warning("[LLMGateway] %s error %s: %s",
                           provider, response.status_code, (response.text or "unknown")[:200])
            return None

        return await retry_with_backoff_async(make_request, config=self.retry)

    async def _call_anthropic(
        self, client: httpx.AsyncClient, api_key: str,
        system: str, prompt: str, json_mode: bool, max_tokens: int, temperature: float,
    ) -> Optional[str]:
        """Call Anthropic Messages API."""
        if json_mode:
            system = system + "\n\nRespond with a single JSON object and nothing else."

        async def make_request():
            response = await client.post(
                self.ANTHROPIC_API_URL,
                headers={
                    "x-api-key": api_key,
                    "anthropic-version": "2023-06-01",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.MODELS["anthropic"],
                    "max_tokens": max_tokens,
                    "system": system,
                    "messages": [{"role": "user", "content": prompt}],
                    "temperature": temperature,
                },
            )
            if response.status_code == 200:
                content = response.json().get("content", [])
                if not content:
                    logger.warning("[LLMGateway] Anthropic malformed response: no content")
                    return None
                return (content[0].get("text") or "").strip() or None
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise TransientError(f"Anthropic retryable HTTP {response.status_code}")
            logger.warning("[LLMGateway] Anthropic error %s: %s",
                           response.status_code, (response.text or "unknown")[:200])
            return None

        return await retry_with_backoff_async(make_request, config=self.retry)
