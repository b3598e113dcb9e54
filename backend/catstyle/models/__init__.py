"""
Data shapes for the suggestion pipeline
"""
from catstyle.models.category import NewCategory
from catstyle.models.suggestion import (ErrorResponse, HealthResponse,
                                        ProxyRequest, ProxyResponse,
                                        StyleSuggestion)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "NewCategory",
    "ProxyRequest",
    "ProxyResponse",
    "StyleSuggestion",
]
