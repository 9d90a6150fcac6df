"""Common schemas used across the API."""

from typing import Any

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "error": { "code": str, "message": str, "detail": object } }

    Every error response uses this shape, including HTTPExceptions raised
    from routes (their detail is an ErrorResponse body).
    """

    error: ErrorDetail

    @classmethod
    def of(cls, code: str, message: str, detail: dict[str, Any] | None = None) -> dict[str, Any]:
        """Build the JSON body for an error."""
        return cls(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump()
