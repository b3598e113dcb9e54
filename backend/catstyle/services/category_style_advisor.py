"""
Style assignment for categories the user is creating
"""
from typing import Optional

from catstyle.core.config import Settings
from catstyle.core.feature_flags import (AI_SUGGESTIONS_ENABLED,
                                         AI_SUGGESTIONS_MODEL, DEFAULT_STRING,
                                         FeatureGate, build_feature_gate)
from catstyle.core.logging_config import LoggingConfig
from catstyle.models.category import NewCategory
from catstyle.models.suggestion import StyleSuggestion
from catstyle.services.style_resolver import DeterministicStyleResolver
from catstyle.services.suggestion_client import SuggestionClient

logger = LoggingConfig.get_logger(__name__)


class CategoryStyleAdvisor:
    """Decides between the gateway and the local resolver for a new category"""

    def __init__(
        self,
        feature_gate: FeatureGate,
        client: SuggestionClient,
        resolver: Optional[DeterministicStyleResolver] = None,
    ):
        self.feature_gate = feature_gate
        self.client = client
        self.resolver = resolver or client.resolver

    @classmethod
    def from_settings(cls, settings: Settings) -> "CategoryStyleAdvisor":
        resolver = DeterministicStyleResolver()
        return cls(
            feature_gate=build_feature_gate(settings),
            client=SuggestionClient.from_settings(settings, resolver=resolver),
            resolver=resolver,
        )

    async def _model_override(self) -> Optional[str]:
        model = (await self.feature_gate.get_string(AI_SUGGESTIONS_MODEL)).strip()
        if not model or model == DEFAULT_STRING:
            return None
        return model

    async def suggest_style(self, category_name: str) -> StyleSuggestion:
        """Gateway suggestion when AI suggestions are enabled, local otherwise"""
        if not await self.feature_gate.is_enabled(AI_SUGGESTIONS_ENABLED):
            logger.debug("AI suggestions disabled by feature flag")
            return self.resolver.resolve(category_name)
        return await self.client.suggest_category_style(
            category_name,
            model=await self._model_override(),
        )

    async def suggest_for_new_category(self, category_name: str) -> NewCategory:
        """
        Build the draft of a new category with a suggested style

        Raises:
            ValueError: The name is empty or longer than 50 characters
        """
        name = (category_name or "").strip()
        if not name:
            raise ValueError("Category name cannot be empty")

        style = await self.suggest_style(name)
        return NewCategory(
            name=name,
            icon=style.icon,
            color=style.color,
            background_color=style.background_color,
        )

    async def refresh_flags(self) -> None:
        await self.feature_gate.refresh()

    async def close(self):
        await self.client.aclose()
