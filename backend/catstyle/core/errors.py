"""
Error taxonomy for the suggestion pipeline
"""
from typing import Any, Dict, Optional


class SuggestionError(Exception):
    """Base class for suggestion pipeline errors"""

    category = "unknown"

    def __init__(self, message: str, metadata: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary"""
        return {
            "message": self.message,
            "error_type": type(self).__name__,
            "category": self.category,
            "metadata": self.metadata,
        }


class ConfigurationError(SuggestionError):
    """Provider credential missing; never retried"""

    category = "configuration"


class UpstreamError(SuggestionError):
    """The language-model provider call failed (timeout, auth, rate limit, ...)"""

    category = "upstream"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, metadata)
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429 or "rate limit" in self.message.lower()

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class FormatError(SuggestionError):
    """Model output did not contain a usable JSON object"""

    category = "format"


class ValidationError(SuggestionError):
    """A field of an otherwise successful gateway response is malformed"""

    category = "validation"

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(message, {"field": field, "value": value})
        self.field = field
        self.value = value
