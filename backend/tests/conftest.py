"""
Pytest configuration and fixtures
"""
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# Never talk to a real provider, gateway or flag service from unit tests
for _var in ("OPENAI_API_KEY", "AI_PROXY_URL", "FEATURE_FLAGS_URL", "APP_ENV", "DEFAULT_AI_MODEL"):
    os.environ.pop(_var, None)
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_FILE_ENABLED", "false")

from catstyle.core.config import Settings  # noqa: E402
from catstyle.core.openai_client import CompletionResponse, OpenAIChatClient  # noqa: E402
from catstyle.services.provider_gateway import ProviderGateway  # noqa: E402
from catstyle.services.style_resolver import DeterministicStyleResolver  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    """Settings with a provider credential"""
    return Settings(openai_api_key="sk-test-key", app_env="production")


@pytest.fixture
def unconfigured_settings() -> Settings:
    """Settings without any provider credential"""
    return Settings(openai_api_key=None, app_env="production")


@pytest.fixture
def resolver() -> DeterministicStyleResolver:
    return DeterministicStyleResolver()


def make_llm_client(text: str = '{"icon": "fitness", "color": "#10B981"}') -> Mock:
    """OpenAIChatClient stand-in whose completion returns the given text"""
    client = Mock(spec=OpenAIChatClient)
    client.complete = AsyncMock(return_value=CompletionResponse(model="gpt-3.5-turbo", text=text))
    client.close = AsyncMock()
    return client


@pytest.fixture
def llm_client() -> Mock:
    return make_llm_client()


@pytest.fixture
def gateway(settings, llm_client) -> ProviderGateway:
    return ProviderGateway(settings, llm_client=llm_client)
