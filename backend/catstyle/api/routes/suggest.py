"""
Gateway HTTP endpoints: suggestion, CORS preflight and liveness probe
"""
import json
import traceback
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from catstyle.core.config import Settings, get_settings
from catstyle.core.errors import (ConfigurationError, FormatError,
                                  UpstreamError)
from catstyle.core.logging_config import LoggingConfig
from catstyle.models.suggestion import ErrorResponse, ProxyRequest
from catstyle.services.provider_gateway import ProviderGateway

logger = LoggingConfig.get_logger(__name__)
router = APIRouter(tags=["suggest"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

EMPTY_NAME_MESSAGE = "categoryName is required and cannot be empty"

NOT_ALLOWED_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "TRACE"]
HEALTH_METHODS = ["HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"]

_gateway: Optional[ProviderGateway] = None


def get_gateway() -> ProviderGateway:
    """Get global gateway instance"""
    global _gateway
    if _gateway is None:
        _gateway = ProviderGateway(get_settings())
    return _gateway


def _json(status_code: int, content: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


def _error(status_code: int, error: str, message: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details)
    return _json(status_code, body.model_dump(exclude_none=True))


def _error_response(exc: Exception, settings: Settings) -> JSONResponse:
    """Map pipeline exceptions onto gateway status codes"""
    if isinstance(exc, ConfigurationError):
        return _error(503, "Service Unavailable", exc.message)
    if isinstance(exc, UpstreamError):
        if exc.is_rate_limited:
            return _error(429, "Too Many Requests", exc.message)
        if "api key" in exc.message.lower():
            return _error(503, "Service Unavailable", exc.message)
    if isinstance(exc, FormatError):
        return _error(400, "Bad Request", exc.message)
    if isinstance(exc, ValueError):
        return _error(400, "Bad Request", str(exc))

    details = traceback.format_exc() if settings.is_development else None
    message = getattr(exc, "message", None) or str(exc) or "Unknown error occurred"
    return _error(500, "Internal Server Error", message, details)


async def _parse_request(request: Request) -> ProxyRequest:
    raw = await request.body()
    if not raw.strip():
        raise ValueError("Missing request body")
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValueError("Invalid request body") from e
    if not isinstance(data, dict):
        raise ValueError("Invalid request body")

    try:
        return ProxyRequest.model_validate(data)
    except PydanticValidationError as e:
        if any(err["loc"] and err["loc"][0] == "categoryName" for err in e.errors()):
            raise ValueError(EMPTY_NAME_MESSAGE) from e
        raise ValueError("Invalid request body") from e


@router.options("")
async def preflight():
    """CORS preflight"""
    return Response(status_code=200, content=b"", headers=CORS_HEADERS)


@router.post("")
async def suggest(request: Request, gateway: ProviderGateway = Depends(get_gateway)):
    """
    Suggest an icon and color for a category name

    Body: {"categoryName": str, "model"?: str}
    """
    try:
        proxy_request = await _parse_request(request)
        suggestion = await gateway.suggest(proxy_request.category_name, proxy_request.model)
        return _json(200, suggestion.model_dump(exclude_none=True))
    except Exception as e:
        if isinstance(e, (ValueError, ConfigurationError)):
            logger.info(f"Rejected suggestion request: {e}")
        else:
            logger.error(f"Suggestion request failed: {e}", exc_info=True)
        return _error_response(e, gateway.settings)


@router.api_route("", methods=NOT_ALLOWED_METHODS, include_in_schema=False)
async def method_not_allowed():
    return _error(405, "Method Not Allowed", "Only POST method is supported")


@router.get("/health")
@router.api_route("/health", methods=HEALTH_METHODS, include_in_schema=False)
async def gateway_health(gateway: ProviderGateway = Depends(get_gateway)):
    """
    Liveness probe; never calls the model and answers any method

    Returns:
        dict: status, timestamp, provider, configured, defaultModel
    """
    return _json(200, gateway.health().model_dump(by_alias=True))
