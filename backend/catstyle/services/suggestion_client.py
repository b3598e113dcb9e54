"""
Client side of the suggestion pipeline

Calls the gateway over HTTP, repairs what comes back and degrades to the
deterministic resolver on any failure. suggest_category_style never raises.
"""
import asyncio
import time
from typing import Any, Dict, Optional, Set, Tuple

import httpx

from catstyle.core.config import Settings
from catstyle.core.errors import FormatError, ValidationError
from catstyle.core.logging_config import LoggingConfig
from catstyle.core.metrics import (gateway_call_duration_seconds,
                                   style_suggestions_total)
from catstyle.models.suggestion import StyleSuggestion
from catstyle.services.style_contract import build_suggestion, is_valid_hex_color
from catstyle.services.style_resolver import DeterministicStyleResolver

logger = LoggingConfig.get_logger(__name__)

DEFAULT_TIMEOUT_MS = 15000
DEFAULT_CONFIDENCE = 0.95


def validate_proxy_response(data: Any) -> Tuple[str, str]:
    """
    Check the fields of a gateway reply

    Returns:
        (icon, color) when both are usable

    Raises:
        FormatError: The reply is not a JSON object
        ValidationError: icon is empty or color is not #RRGGBB
    """
    if not isinstance(data, dict):
        raise FormatError("Gateway reply is not a JSON object")

    icon = data.get("icon")
    if not isinstance(icon, str) or not icon.strip():
        raise ValidationError("Gateway reply has no icon", field="icon", value=icon)

    color = data.get("color")
    if not is_valid_hex_color(color):
        raise ValidationError("Gateway reply has an invalid color", field="color", value=color)

    return icon.strip(), color


def _consume_result(task: asyncio.Task):
    # Late result of an abandoned call; read it so asyncio does not warn
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned gateway call failed late: {exc!r}")
    else:
        logger.debug("Abandoned gateway call completed late, result discarded")


class SuggestionClient:
    """
    Suggests a category style through the gateway with a local fallback

    The timeout abandons the gateway call instead of cancelling it: the
    request keeps running in the background and its outcome is dropped.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        use_mock: bool = False,
        resolver: Optional[DeterministicStyleResolver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = endpoint or None
        self.timeout_ms = timeout_ms or DEFAULT_TIMEOUT_MS
        self.use_mock = use_mock
        self.resolver = resolver or DeterministicStyleResolver()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        # Strong references keep abandoned calls alive until they finish
        self._abandoned: Set[asyncio.Task] = set()

        if self.is_configured():
            logger.info(f"AI proxy configured: {self.endpoint}")
        else:
            logger.info("AI proxy not configured, using local suggestions")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        resolver: Optional[DeterministicStyleResolver] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "SuggestionClient":
        return cls(
            endpoint=settings.ai_proxy_url,
            timeout_ms=settings.ai_proxy_timeout_ms,
            use_mock=settings.ai_proxy_use_mock,
            resolver=resolver,
            transport=transport,
        )

    def is_configured(self) -> bool:
        """True when suggestions will actually be requested from the gateway"""
        return bool(self.endpoint) and not self.use_mock

    @property
    def provider_name(self) -> str:
        return "gateway" if self.is_configured() else "local"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            # No transport-level timeout: _call_with_timeout is the only limit
            self._client = httpx.AsyncClient(timeout=None, transport=self._transport)
        return self._client

    async def _call_gateway(self, category_name: str, model: Optional[str] = None) -> Any:
        """POST the trimmed name to the gateway and return the decoded body"""
        body: Dict[str, Any] = {"categoryName": category_name.strip()}
        if model:
            body["model"] = model

        logger.debug(f"POST {self.endpoint}", extra={"category_name": body["categoryName"]})
        response = await self._get_client().post(self.endpoint, json=body)
        response.raise_for_status()
        return response.json()

    async def _call_with_timeout(self, category_name: str, model: Optional[str]) -> Any:
        """Race the gateway call against the timeout; abandon it if it loses"""
        start_time = time.time()
        task = asyncio.ensure_future(self._call_gateway(category_name, model))
        done, _ = await asyncio.wait({task}, timeout=self.timeout_ms / 1000)
        if task not in done:
            gateway_call_duration_seconds.labels(outcome="timeout").observe(time.time() - start_time)
            self._abandoned.add(task)
            task.add_done_callback(self._abandoned.discard)
            task.add_done_callback(_consume_result)
            raise asyncio.TimeoutError(f"Timeout after {self.timeout_ms}ms")

        outcome = "error" if task.exception() is not None else "success"
        gateway_call_duration_seconds.labels(outcome=outcome).observe(time.time() - start_time)
        return task.result()

    def _repair(self, data: Any, category_name: str) -> StyleSuggestion:
        """Fix invalid fields and derive the background from the final color"""
        if not isinstance(data, dict):
            raise FormatError("Gateway reply is not a JSON object")

        icon = data.get("icon")
        color = data.get("color")
        source = "gateway"
        try:
            icon, color = validate_proxy_response(data)
        except ValidationError as e:
            source = "repaired"
            logger.warning(
                f"Repairing gateway reply: {e.message}",
                extra={"field": e.field, "value": e.value},
            )
            if not isinstance(icon, str) or not icon.strip():
                icon = self.resolver.fallback_icon(category_name)
            else:
                icon = icon.strip()
            if not is_valid_hex_color(color):
                color = self.resolver.fallback_color(category_name)

        provider = data.get("provider") or "AI"
        confidence = data.get("confidence")
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            confidence = DEFAULT_CONFIDENCE
        percent = int(confidence * 100 + 0.5)
        style_suggestions_total.labels(source=source).inc()

        return build_suggestion(
            icon,
            color,
            reasoning=f"suggested by {provider} with {percent}% confidence",
        )

    async def suggest_category_style(self, category_name: str, model: Optional[str] = None) -> StyleSuggestion:
        """
        Suggest icon and colors for a category

        Args:
            category_name: Category name as typed by the user
            model: Optional model identifier forwarded to the gateway

        Returns:
            StyleSuggestion; gateway failures of any kind yield the local one
        """
        if not self.is_configured():
            logger.debug("Using local suggestion")
            style_suggestions_total.labels(source="local").inc()
            return self.resolver.resolve(category_name)

        if not (category_name or "").strip():
            style_suggestions_total.labels(source="local").inc()
            return self.resolver.resolve(category_name or "")

        try:
            data = await self._call_with_timeout(category_name, model)
            suggestion = self._repair(data, category_name)
            logger.info(
                "Suggestion processed",
                extra={"icon": suggestion.icon, "color": suggestion.color},
            )
            return suggestion
        except Exception as e:
            logger.warning(f"Error calling AI proxy, falling back to local suggestion: {e!r}")
            style_suggestions_total.labels(source="fallback").inc()
            return self.resolver.resolve(category_name)

    async def aclose(self):
        """Close the pooled HTTP client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
