"""
Tests for feature flag gates
"""
import asyncio

import httpx
import pytest

from catstyle.core.feature_flags import (AI_SUGGESTIONS_ENABLED,
                                         AI_SUGGESTIONS_MODEL,
                                         RemoteFeatureGate, StaticFeatureGate,
                                         build_feature_gate, coerce_bool)

FLAGS_URL = "https://flags.test/flags.json"


class FakeClock:

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _remote(handler, clock=None, **kwargs) -> RemoteFeatureGate:
    return RemoteFeatureGate(
        FLAGS_URL,
        transport=httpx.MockTransport(handler),
        clock=clock or FakeClock(),
        **kwargs,
    )


@pytest.mark.parametrize(
    "value,expected",
    [
        (True, True), (False, False), ("true", True), ("FALSE", False), (" 0 ", False),
        ("on", True), (1, True), (0, False), ("maybe", True), (None, True),
    ],
)
def test_coerce_bool(value, expected):
    assert coerce_bool(value) is expected


def test_coerce_bool_uses_given_default():
    assert coerce_bool("maybe", default=False) is False


class TestStaticFeatureGate:

    @pytest.mark.asyncio
    async def test_defaults(self):
        gate = StaticFeatureGate()

        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is True
        assert await gate.get_string(AI_SUGGESTIONS_MODEL) == "mock"

    @pytest.mark.asyncio
    async def test_unknown_flags(self):
        gate = StaticFeatureGate()

        assert await gate.is_enabled("something_else") is True
        assert await gate.get_string("something_else") == "mock"

    @pytest.mark.asyncio
    async def test_string_false(self):
        gate = StaticFeatureGate({AI_SUGGESTIONS_ENABLED: "false"})
        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is False

    @pytest.mark.asyncio
    async def test_from_settings(self, settings):
        settings = settings.model_copy(update={"ai_suggestions_enabled": False, "ai_suggestions_model": "openai/gpt-4o"})
        gate = StaticFeatureGate.from_settings(settings)

        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is False
        assert await gate.get_string(AI_SUGGESTIONS_MODEL) == "openai/gpt-4o"


class TestRemoteFeatureGate:

    @pytest.mark.asyncio
    async def test_fetches_lazily_and_caches(self):
        clock = FakeClock()
        gate = _remote(
            lambda request: httpx.Response(200, json={AI_SUGGESTIONS_ENABLED: "false", AI_SUGGESTIONS_MODEL: "openai/gpt-4o"}),
            clock=clock,
            minimum_fetch_interval=3600,
        )
        assert gate.fetch_count == 0

        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is False
        assert await gate.get_string(AI_SUGGESTIONS_MODEL) == "openai/gpt-4o"
        assert gate.fetch_count == 1

        clock.now += 3599
        await gate.is_enabled(AI_SUGGESTIONS_ENABLED)
        assert gate.fetch_count == 1

        clock.now += 1
        await gate.is_enabled(AI_SUGGESTIONS_ENABLED)
        assert gate.fetch_count == 2

    @pytest.mark.asyncio
    async def test_missing_flags_use_defaults(self):
        gate = _remote(lambda request: httpx.Response(200, json={}))

        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is True
        assert await gate.get_string(AI_SUGGESTIONS_MODEL) == "mock"

    @pytest.mark.asyncio
    async def test_unreachable_source_uses_defaults_and_backs_off(self):
        clock = FakeClock()

        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        gate = _remote(handler, clock=clock)

        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is True
        assert await gate.get_string(AI_SUGGESTIONS_MODEL) == "mock"
        assert gate.fetch_count == 1

        clock.now += 10
        await gate.is_enabled(AI_SUGGESTIONS_ENABLED)
        assert gate.fetch_count == 1

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_last_values(self):
        responses = [
            httpx.Response(200, json={AI_SUGGESTIONS_ENABLED: False}),
            httpx.Response(503, text="unavailable"),
        ]
        gate = _remote(lambda request: responses.pop(0))

        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is False
        await gate.refresh()

        assert gate.fetch_count == 2
        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is False

    @pytest.mark.asyncio
    async def test_non_object_document_is_ignored(self):
        gate = _remote(lambda request: httpx.Response(200, json=["ai_suggestions_enabled"]))

        assert await gate.is_enabled(AI_SUGGESTIONS_ENABLED) is True

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_fetch(self):
        async def handler(request):
            await asyncio.sleep(0.01)
            return httpx.Response(200, json={AI_SUGGESTIONS_ENABLED: True})

        gate = _remote(handler)
        results = await asyncio.gather(*(gate.is_enabled(AI_SUGGESTIONS_ENABLED) for _ in range(5)))

        assert results == [True] * 5
        assert gate.fetch_count == 1

    @pytest.mark.asyncio
    async def test_refresh_ignores_interval(self):
        values = iter([{AI_SUGGESTIONS_MODEL: "openai/gpt-4o"}, {AI_SUGGESTIONS_MODEL: "openai/gpt-4o-mini"}])
        gate = _remote(lambda request: httpx.Response(200, json=next(values)))

        assert await gate.get_string(AI_SUGGESTIONS_MODEL) == "openai/gpt-4o"
        await gate.refresh()
        assert await gate.get_string(AI_SUGGESTIONS_MODEL) == "openai/gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_get_all_values(self):
        gate = _remote(lambda request: httpx.Response(200, json={AI_SUGGESTIONS_ENABLED: "off"}))

        assert await gate.get_all_values() == {AI_SUGGESTIONS_ENABLED: False, AI_SUGGESTIONS_MODEL: "mock"}


def test_build_feature_gate_without_url(settings):
    assert isinstance(build_feature_gate(settings), StaticFeatureGate)


def test_build_feature_gate_with_url(settings):
    settings = settings.model_copy(update={"feature_flags_url": FLAGS_URL, "feature_flags_fetch_interval_seconds": 60})
    gate = build_feature_gate(settings)

    assert isinstance(gate, RemoteFeatureGate)
    assert gate.url == FLAGS_URL
    assert gate.minimum_fetch_interval == 60


def test_remote_gate_requires_url(settings):
    with pytest.raises(ValueError):
        RemoteFeatureGate.from_settings(settings)
