"""
Request, response and suggestion shapes shared by the gateway and the client
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StyleSuggestion(BaseModel):
    """Icon/color pair describing a category's visual identity"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    icon: str = Field(..., min_length=1, description="Icon identifier")
    color: str = Field(..., pattern=r"^#[0-9A-Fa-f]{6}$", description="Foreground color (#RRGGBB)")
    background_color: str = Field(
        ...,
        alias="backgroundColor",
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Background color, always derived from color"
    )
    reasoning: Optional[str] = Field(None, description="Where the suggestion came from")


class ProxyRequest(BaseModel):
    """Body accepted by the gateway"""

    model_config = ConfigDict(populate_by_name=True)

    category_name: str = Field(..., alias="categoryName")
    model: Optional[str] = Field(None, description="'<provider>/<model>' or bare model name")

    @field_validator("category_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if not isinstance(v, str) or not v.strip():
            raise ValueError("categoryName is required and cannot be empty")
        return v.strip()

    @field_validator("model", mode="before")
    @classmethod
    def blank_model(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProxyResponse(BaseModel):
    """Body returned by the gateway on success"""

    icon: str
    color: str
    confidence: Optional[float] = Field(None, ge=0.0, le=1.0)
    provider: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body of every gateway error response"""

    error: str
    message: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Gateway liveness probe"""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    timestamp: str
    provider: str
    configured: bool
    default_model: str = Field(..., alias="defaultModel")
