import asyncio
import logging
import ssl
from dataclasses import dataclass
from typing import Callable

import aiohttp

from takedown_assistant.domain.errors import (
    AuthenticationFailed,
    ConfigurationError,
    EmptyResponse,
    RateLimited,
    TransportFailure,
)
from takedown_assistant.models.case import PromptKind


@dataclass(frozen=True)
class ModelConfig:
    """Fixed generation settings for one prompt kind."""

    model: str
    max_tokens: int
    temperature: float

    def request_body(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }


def model_configs_from_settings(settings) -> dict[PromptKind, ModelConfig]:
    model = settings.anthropic_model
    return {
        PromptKind.FOLLOW_UP: ModelConfig(
            model, settings.follow_up_max_tokens, settings.follow_up_temperature
        ),
        PromptKind.LETTER_DRAFT: ModelConfig(
            model, settings.letter_max_tokens, settings.letter_temperature
        ),
        PromptKind.QUALITY_CHECK: ModelConfig(
            model, settings.quality_check_max_tokens, settings.quality_check_temperature
        ),
    }


class AnthropicClient:
    """Thin gateway to the Anthropic Messages API.

    One call per `invoke`; retries are the caller's business. Every failure
    surfaces as a typed DomainError.
    """

    def __init__(
        self,
        api_key: str,
        model_configs: dict[PromptKind, ModelConfig],
        base_url: str = "https://api.anthropic.com/v1",
        api_version: str = "2023-06-01",
        timeout_seconds: int = 120,
        session_factory: Callable[..., aiohttp.ClientSession] | None = None,
    ):
        missing = set(PromptKind) - set(model_configs)
        if missing:
            raise ValueError(f"No model configuration for: {sorted(k.value for k in missing)}")
        self.api_key = api_key
        self.model_configs = model_configs
        self.base_url = base_url.rstrip("/")
        self.logger = logging.getLogger(__name__)
        self.headers = {
            "x-api-key": self.api_key,
            "anthropic-version": api_version,
            "content-type": "application/json",
        }
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.session_factory = session_factory or aiohttp.ClientSession
        # Create SSL context for all requests
        self.ssl_context = ssl.create_default_context()
        self.ssl_context.check_hostname = True
        self.ssl_context.verify_mode = ssl.CERT_REQUIRED
        self.logger.debug("Initialized AnthropicClient")

    @classmethod
    def from_settings(cls, settings) -> "AnthropicClient":
        return cls(
            api_key=settings.anthropic_api_key,
            model_configs=model_configs_from_settings(settings),
            base_url=settings.anthropic_base_url,
            api_version=settings.anthropic_api_version,
            timeout_seconds=settings.ai_request_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationError("Missing Anthropic API key")

    async def invoke(self, kind: PromptKind, prompt: str) -> str:
        """Send one prompt of the given kind and return the model's raw text."""
        self.ensure_configured()
        config = self.model_configs[kind]
        self.logger.info(
            f"Invoking {config.model} for {kind.value} "
            f"(max_tokens={config.max_tokens}, temperature={config.temperature})"
        )
        try:
            async with self.session_factory(timeout=self.timeout) as session:
                async with session.post(
                    f"{self.base_url}/messages",
                    headers=self.headers,
                    json=config.request_body(prompt),
                    ssl=self.ssl_context,
                ) as response:
                    self._raise_for_status(response.status, response.headers)
                    response_data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError: a 2xx body that is not JSON
            self.logger.error(f"Transport failure calling AI service: {e}")
            raise TransportFailure(f"Could not reach the AI service: {e}", cause=e) from e

        text = self._extract_text(response_data)
        if not text:
            self.logger.error(f"Empty response from AI service for {kind.value}")
            raise EmptyResponse()
        self.logger.debug(f"Raw {kind.value} response: {text[:500]}...")
        return text

    def _raise_for_status(self, status: int, headers) -> None:
        if 200 <= status < 300:
            return
        if status in (401, 403):
            raise AuthenticationFailed()
        if status == 429:
            retry_after = headers.get("retry-after") if headers else None
            raise RateLimited(retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None)
        raise TransportFailure(f"AI service returned HTTP {status}")

    @staticmethod
    def _extract_text(response_data) -> str:
        if not isinstance(response_data, dict):
            return ""
        blocks = response_data.get("content") or []
        parts = [
            block.get("text", "")
            for block in blocks
            if isinstance(block, dict) and block.get("type", "text") == "text"
        ]
        return "".join(parts).strip()
