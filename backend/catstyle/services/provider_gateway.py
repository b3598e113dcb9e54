"""
Gateway between suggestion clients and the language-model provider

Builds the fixed prompt, makes exactly one completion call and turns the
model's free-form text into a validated ProxyResponse.
"""
import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional

from catstyle.core.config import Settings, get_settings
from catstyle.core.errors import ConfigurationError, FormatError
from catstyle.core.logging_config import LoggingConfig
from catstyle.core.openai_client import OpenAIChatClient
from catstyle.models.suggestion import HealthResponse, ProxyResponse

logger = LoggingConfig.get_logger(__name__)

PROVIDER_NAME = "openai"

# The model reports no calibrated confidence
DEFAULT_CONFIDENCE = 0.95

# Greedy: from the first '{' to the last '}'
JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

EXAMPLE_ICONS = (
    "home", "briefcase", "fitness", "restaurant", "book", "airplane", "cart",
    "medical", "musical-notes", "game-controller", "school", "wallet", "heart",
    "star", "trophy",
)

PROMPT_TEMPLATE = """Suggest an Ionicons icon and a color for a task category named "{category_name}".

IMPORTANT RULES:
1. The icon MUST be a valid Ionicons 7.x name {icon_rule}
2. The color MUST be a hexadecimal color in the form #RRGGBB
3. Reply ONLY with JSON, no markdown and no explanations

Response format:
{{
  "icon": "{icon_placeholder}",
  "color": "#hexcolor"
}}

Examples:
{{"icon": "{example_work}", "color": "#007AFF"}} for "Work"
{{"icon": "{example_gym}", "color": "#10B981"}} for "Gym"
{{"icon": "{example_food}", "color": "#F97316"}} for "Recipes"

Other valid icons: {example_icons}

Reply ONLY with the JSON:"""


class ModelIdentifier(NamedTuple):
    provider: str
    model_name: str

    @classmethod
    def parse(cls, identifier: str) -> "ModelIdentifier":
        """
        Split '<provider>/<model>' on the first slash

        A bare name is used unchanged as the model name and is attributed
        to the default provider.
        """
        identifier = identifier.strip()
        if "/" in identifier:
            provider, model_name = identifier.split("/", 1)
            return cls(provider or PROVIDER_NAME, model_name)
        return cls(PROVIDER_NAME, identifier)


def build_prompt(category_name: str, icon_suffix: str = "") -> str:
    """Render the fixed prompt for an already validated category name"""
    if icon_suffix:
        icon_rule = f'ending in "{icon_suffix}" (no "ion-" prefix)'
    else:
        icon_rule = 'without the "ion-" prefix and without the "-outline" suffix'
    return PROMPT_TEMPLATE.format(
        category_name=category_name,
        icon_rule=icon_rule,
        icon_placeholder=f"icon-name{icon_suffix}",
        example_work=f"briefcase{icon_suffix}",
        example_gym=f"fitness{icon_suffix}",
        example_food=f"restaurant{icon_suffix}",
        example_icons=", ".join(f"{name}{icon_suffix}" for name in EXAMPLE_ICONS),
    )


def parse_model_output(text: str) -> Dict[str, Any]:
    """
    Extract and validate the JSON object in a model reply

    Raises:
        FormatError: No {...} substring, invalid JSON, not an object, or
            icon/color missing or empty
    """
    match = JSON_OBJECT_RE.search(text or "")
    if not match:
        raise FormatError("Invalid AI response format: no JSON object found")

    try:
        data = json.loads(match.group())
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid AI response format: {e.msg}") from e

    if not isinstance(data, dict):
        raise FormatError("Invalid AI response format: expected a JSON object")

    icon = data.get("icon")
    color = data.get("color")
    if not isinstance(icon, str) or not icon.strip() or not isinstance(color, str) or not color.strip():
        raise FormatError("Missing icon or color in AI response")

    return {"icon": icon.strip(), "color": color.strip()}


class ProviderGateway:
    """Turns a category name into a provider-backed ProxyResponse"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        llm_client: Optional[OpenAIChatClient] = None,
    ):
        self.settings = settings or get_settings()
        self.llm_client = llm_client or OpenAIChatClient(self.settings)

    @property
    def is_configured(self) -> bool:
        return self.settings.provider_configured

    def resolve_model(self, model_identifier: Optional[str] = None) -> ModelIdentifier:
        return ModelIdentifier.parse(model_identifier or self.settings.default_ai_model)

    async def suggest(self, category_name: str, model_identifier: Optional[str] = None) -> ProxyResponse:
        """
        Ask the model for an icon and color

        Args:
            category_name: Category name; trimmed and checked before the call
            model_identifier: '<provider>/<model>' or bare name, defaults to settings

        Returns:
            ProxyResponse with fixed confidence and the provider label

        Raises:
            ValueError: Empty category name
            ConfigurationError: No provider credential
            UpstreamError: The completion call failed
            FormatError: The reply did not contain a usable JSON object
        """
        name = (category_name or "").strip()
        if not name:
            raise ValueError("categoryName is required and cannot be empty")
        if not self.is_configured:
            raise ConfigurationError("OPENAI_API_KEY not configured")

        model = self.resolve_model(model_identifier)
        prompt = build_prompt(name, self.settings.icon_suffix)

        logger.info(
            "Generating suggestion",
            extra={"category_name": name, "provider": model.provider, "model_name": model.model_name},
        )
        completion = await self.llm_client.complete(
            prompt,
            model=model.model_name,
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
        )

        fields = parse_model_output(completion.text)
        suggestion = ProxyResponse(
            icon=fields["icon"],
            color=fields["color"],
            confidence=DEFAULT_CONFIDENCE,
            provider=model.provider,
        )
        logger.info("Suggestion generated", extra=suggestion.model_dump())
        return suggestion

    def health(self) -> HealthResponse:
        """Report configuration without touching the provider"""
        configured = self.is_configured
        return HealthResponse(
            status="healthy" if configured else "not_configured",
            timestamp=datetime.now(timezone.utc).isoformat(),
            provider=PROVIDER_NAME,
            configured=configured,
            default_model=self.settings.default_ai_model,
        )

    async def close(self):
        await self.llm_client.close()
