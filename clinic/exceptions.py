from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Optional


class APIException(HTTPException):
    """HTTPException carrying a stable machine-readable code."""

    code = "error"

    def __init__(self, status_code: int, detail: str, code: Optional[str] = None, field: Optional[str] = None):
        super().__init__(status_code=status_code, detail=detail)
        if code is not None:
            self.code = code
        self.field = field


class ValidationError(APIException):
    """The request is malformed: missing field, bad format, reason too short."""

    code = "validation_error"

    def __init__(self, detail: str, field: Optional[str] = None):
        super().__init__(status_code=400, detail=detail, field=field)


class TransitionError(APIException):
    """The action is not allowed in the appointment's current status."""

    code = "invalid_transition"

    def __init__(self, detail: str, status_code: int = 409):
        super().__init__(status_code=status_code, detail=detail)


class PermissionDeniedError(TransitionError):
    """The caller's role may never perform this action."""

    code = "forbidden"

    def __init__(self, detail: str):
        super().__init__(detail, status_code=403)


class ConflictError(APIException):
    """The request was valid when issued but the data moved underneath it."""

    code = "slot_conflict"

    def __init__(self, detail: str):
        super().__init__(status_code=409, detail=detail)


class StaleUpdateError(ConflictError):
    code = "concurrent_update"

    def __init__(self, detail: str = "This appointment was just changed by someone else. Reload it and try again."):
        super().__init__(detail)


class NotFoundError(APIException):
    code = "not_found"

    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


def create_error_response(error_message: str, code: str = "error", field: Optional[str] = None) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message,
        "code": code,
        "field": field,
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", "unauthorized")
        )

    if isinstance(exc, APIException):
        content = create_error_response(exc.detail, exc.code, exc.field)
    elif exc.status_code == 401:
        content = create_error_response(exc.detail, "unauthorized")
    else:
        content = create_error_response(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=content)

async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body/query validation failures with the first offending field"""
    errors = exc.errors()
    field = None
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or None
        message = first.get("msg", message)
        if field:
            message = f"{field}: {message}"
    return JSONResponse(
        status_code=400,
        content=create_error_response(message, ValidationError.code, field)
    )
