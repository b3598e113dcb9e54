"""
Feature flags consulted before asking the gateway for a suggestion
"""
import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import httpx

from catstyle.core.config import Settings
from catstyle.core.logging_config import LoggingConfig
from catstyle.core.metrics import feature_flag_fetches_total

logger = LoggingConfig.get_logger(__name__)

AI_SUGGESTIONS_ENABLED = "ai_suggestions_enabled"
AI_SUGGESTIONS_MODEL = "ai_suggestions_model"

# Used when a flag is missing or the flag source cannot be reached
DEFAULT_BOOL = True
DEFAULT_STRING = "mock"

DEFAULT_FLAGS: Dict[str, Any] = {
    AI_SUGGESTIONS_ENABLED: DEFAULT_BOOL,
    AI_SUGGESTIONS_MODEL: DEFAULT_STRING,
}


def coerce_bool(value: Any, default: bool = DEFAULT_BOOL) -> bool:
    """Interpret a flag value as a boolean"""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
    return default


class FeatureGate(ABC):
    """Boolean/string flag source"""

    @abstractmethod
    async def is_enabled(self, flag_name: str) -> bool:
        """Flag as a boolean, True when unknown"""

    @abstractmethod
    async def get_string(self, flag_name: str) -> str:
        """Flag as a string, 'mock' when unknown"""

    @abstractmethod
    async def refresh(self) -> None:
        """Reload flag values from the source"""


class StaticFeatureGate(FeatureGate):
    """Flags held in memory, typically built from settings"""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values: Dict[str, Any] = dict(DEFAULT_FLAGS)
        if values:
            self.values.update(values)

    @classmethod
    def from_settings(cls, settings: Settings) -> "StaticFeatureGate":
        return cls({
            AI_SUGGESTIONS_ENABLED: settings.ai_suggestions_enabled,
            AI_SUGGESTIONS_MODEL: settings.ai_suggestions_model,
        })

    async def is_enabled(self, flag_name: str) -> bool:
        return coerce_bool(self.values.get(flag_name, DEFAULT_BOOL))

    async def get_string(self, flag_name: str) -> str:
        value = self.values.get(flag_name)
        return DEFAULT_STRING if value is None else str(value)

    async def refresh(self) -> None:
        return None


class RemoteFeatureGate(FeatureGate):
    """
    Flags fetched as a flat JSON object from an HTTP endpoint

    Values are fetched lazily on first use and cached for
    minimum_fetch_interval seconds. A failed fetch keeps the last known
    values (or the defaults) and is not retried before the interval passes.
    Concurrent first calls share a single fetch.
    """

    def __init__(
        self,
        url: str,
        minimum_fetch_interval: float = 3600.0,
        fetch_timeout: float = 60.0,
        defaults: Optional[Dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url
        self.minimum_fetch_interval = minimum_fetch_interval
        self.fetch_timeout = fetch_timeout
        self.defaults: Dict[str, Any] = dict(DEFAULT_FLAGS)
        if defaults:
            self.defaults.update(defaults)
        self._transport = transport
        self._clock = clock
        self._values: Dict[str, Any] = {}
        self._fetched_at: Optional[float] = None
        self._lock = asyncio.Lock()
        self.fetch_count = 0

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "RemoteFeatureGate":
        if not settings.feature_flags_url:
            raise ValueError("feature_flags_url is not configured")
        return cls(
            settings.feature_flags_url,
            minimum_fetch_interval=settings.feature_flags_fetch_interval_seconds,
            fetch_timeout=settings.feature_flags_fetch_timeout_seconds,
            defaults={
                AI_SUGGESTIONS_ENABLED: settings.ai_suggestions_enabled,
                AI_SUGGESTIONS_MODEL: settings.ai_suggestions_model,
            },
            **kwargs,
        )

    def _is_stale(self) -> bool:
        if self._fetched_at is None:
            return True
        return self._clock() - self._fetched_at >= self.minimum_fetch_interval

    async def _fetch(self):
        self.fetch_count += 1
        try:
            async with httpx.AsyncClient(timeout=self.fetch_timeout, transport=self._transport) as client:
                response = await client.get(self.url)
                response.raise_for_status()
                data = response.json()
            if not isinstance(data, dict):
                raise ValueError("flag document is not a JSON object")
            self._values = data
            feature_flag_fetches_total.labels(status="success").inc()
            logger.info("Feature flags fetched", extra={"flag_count": len(data)})
        except (httpx.HTTPError, ValueError) as e:
            feature_flag_fetches_total.labels(status="error").inc()
            logger.error(f"Error fetching feature flags from {self.url}: {e}")
        finally:
            self._fetched_at = self._clock()

    async def _ensure_fresh(self):
        if not self._is_stale():
            return
        async with self._lock:
            if self._is_stale():
                await self._fetch()

    def _lookup(self, flag_name: str) -> Any:
        if flag_name in self._values:
            return self._values[flag_name]
        return self.defaults.get(flag_name)

    async def is_enabled(self, flag_name: str) -> bool:
        await self._ensure_fresh()
        return coerce_bool(self._lookup(flag_name), default=coerce_bool(self.defaults.get(flag_name)))

    async def get_string(self, flag_name: str) -> str:
        await self._ensure_fresh()
        value = self._lookup(flag_name)
        return DEFAULT_STRING if value is None else str(value)

    async def refresh(self) -> None:
        """Fetch now, ignoring the minimum interval"""
        async with self._lock:
            await self._fetch()

    async def get_all_values(self) -> Dict[str, Any]:
        """Current values of the known flags (debugging aid)"""
        return {
            AI_SUGGESTIONS_ENABLED: await self.is_enabled(AI_SUGGESTIONS_ENABLED),
            AI_SUGGESTIONS_MODEL: await self.get_string(AI_SUGGESTIONS_MODEL),
        }


def build_feature_gate(settings: Settings) -> FeatureGate:
    """Remote gate when a flag URL is configured, static otherwise"""
    if settings.feature_flags_url:
        return RemoteFeatureGate.from_settings(settings)
    return StaticFeatureGate.from_settings(settings)
