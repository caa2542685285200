"""Response envelope shared by every endpoint.

    {
        "code": 0,              // 0 on success, otherwise the AppError code
        "message": "success",
        "data": { ... },        // null on error
        "timestamp": "...",
        "request_id": "req_..." // same id as the X-Request-ID header
    }
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.mo_common.datetime_utils import utc_now
from src.mo_common.errors import AppError


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=new_request_id)


def _request_id(request: Request | None) -> str:
    if request is None:
        return new_request_id()
    return getattr(request.state, "request_id", None) or new_request_id()


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return ApiResponse(data=data, request_id=_request_id(request))


def error_response(exc: AppError, request: Request | None = None) -> ApiResponse:
    return ApiResponse(code=exc.code, message=exc.message, request_id=_request_id(request))
