"""
OpenAI chat-completions client used by the suggestion gateway
"""
import time
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from catstyle.core.config import Settings, get_settings
from catstyle.core.errors import ConfigurationError, UpstreamError
from catstyle.core.logging_config import LoggingConfig
from catstyle.core.metrics import (llm_request_duration_seconds,
                                   llm_requests_total, llm_tokens_total)

logger = LoggingConfig.get_logger(__name__)


class CompletionResponse(BaseModel):
    """Text returned by a single completion call"""
    model: str
    text: str
    finish_reason: Optional[str] = None


class OpenAIChatClient:
    """
    Client for the OpenAI chat-completions API

    One call per completion, no retries and no caching: retry policy belongs
    to whoever calls the gateway.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def settings(self) -> Settings:
        """Lazy load settings"""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def is_configured(self) -> bool:
        return self.settings.provider_configured

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.openai_base_url.rstrip("/"),
                timeout=self.settings.llm_timeout_seconds,
                transport=self._transport,
                limits=httpx.Limits(
                    max_keepalive_connections=5,
                    max_connections=10,
                ),
            )
        return self._client

    @staticmethod
    def _provider_message(response: httpx.Response) -> str:
        """Pull the provider's own error message out of an error body"""
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str):
                return error
        return response.text[:200]

    async def complete(
        self,
        prompt: str,
        model: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> CompletionResponse:
        """
        Run one chat completion

        Args:
            prompt: User message content
            model: Bare model name (e.g. 'gpt-4o-mini')
            max_tokens: Output bound, defaults to settings.llm_max_tokens
            temperature: Sampling temperature, defaults to settings.llm_temperature

        Returns:
            CompletionResponse with the first choice's text

        Raises:
            ConfigurationError: No API key configured
            UpstreamError: Transport failure, timeout or non-2xx reply
        """
        api_key = self.settings.openai_api_key
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY not configured")

        payload: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens if max_tokens is not None else self.settings.llm_max_tokens,
            "temperature": temperature if temperature is not None else self.settings.llm_temperature,
        }

        logger.debug("Sending chat completion", extra={"model": model})
        client = self._get_client()
        start_time = time.time()
        try:
            response = await client.post(
                "/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {api_key}"},
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            llm_requests_total.labels(model=model, status="error").inc()
            raise UpstreamError(f"Request to provider timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            llm_requests_total.labels(model=model, status="error").inc()
            status = e.response.status_code
            raise UpstreamError(
                f"Provider returned {status}: {self._provider_message(e.response)}",
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            llm_requests_total.labels(model=model, status="error").inc()
            raise UpstreamError(f"Error calling provider: {e}") from e
        finally:
            llm_request_duration_seconds.labels(model=model).observe(time.time() - start_time)

        try:
            data = response.json()
            choice = data["choices"][0]
            text = choice["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            llm_requests_total.labels(model=model, status="error").inc()
            raise UpstreamError(f"Unexpected completion payload from provider: {e}") from e

        llm_requests_total.labels(model=model, status="success").inc()
        usage = data.get("usage") or {}
        if isinstance(usage, dict):
            if usage.get("prompt_tokens"):
                llm_tokens_total.labels(model=model, type="input").inc(usage["prompt_tokens"])
            if usage.get("completion_tokens"):
                llm_tokens_total.labels(model=model, type="output").inc(usage["completion_tokens"])

        return CompletionResponse(
            model=data.get("model", model),
            text=text,
            finish_reason=choice.get("finish_reason"),
        )

    async def close(self):
        """Close the HTTP client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
