"""Error responses for the cache API.

Errors are rendered as a Result/Message envelope:

    {"messages": [{"code": "...", "messageType": "Error", "text": "...", "timestamp": "..."}]}
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from carecache.cache.errors import CacheUnavailable

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    """Single error message."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


def _result(code: str, text: str, message_type: MessageType = MessageType.ERROR) -> Result:
    return Result(
        messages=[
            Message(
                code=code,
                messageType=message_type,
                text=text,
                timestamp=datetime.now(UTC).isoformat(),
            )
        ]
    )


class ApiError(HTTPException):
    """Base exception for cache API errors."""

    def __init__(
        self,
        status_code: int,
        code: str,
        text: str,
        message_type: MessageType = MessageType.ERROR,
    ):
        self.code = code
        self.text = text
        self.message_type = message_type
        super().__init__(status_code=status_code, detail=text)

    def to_result(self) -> Result:
        return _result(self.code, self.text, self.message_type)


class NotFoundError(ApiError):
    """Cache entry not found (404)."""

    def __init__(self, key: str):
        super().__init__(
            status_code=404,
            code="NotFound",
            text=f"No live cache entry for key '{key}'",
        )


class BadRequestError(ApiError):
    """Invalid request (400)."""

    def __init__(self, text: str):
        super().__init__(status_code=400, code="BadRequest", text=text)


async def api_exception_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Exception handler for API errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_result().model_dump(by_alias=True),
    )


async def cache_unavailable_handler(request: Request, exc: CacheUnavailable) -> JSONResponse:
    """Map backend outages on admin endpoints to 503."""
    logger.warning(f"Cache backend unavailable during {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content=_result("CacheUnavailable", str(exc)).model_dump(by_alias=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception(f"Unhandled error during {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=_result(
            "InternalServerError",
            "An unexpected error occurred",
            MessageType.EXCEPTION,
        ).model_dump(by_alias=True),
    )
