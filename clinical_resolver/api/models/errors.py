"""Error response models."""

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Error object returned in every non-2xx body."""

    message: str
    type: str
    param: str | None = None
    code: str | None = None


class ErrorResponse(BaseModel):
    """Error response wrapper."""

    error: ErrorDetail


# Error types
ERROR_TYPE_INVALID_REQUEST = "invalid_request_error"
ERROR_TYPE_CONFIGURATION = "configuration_error"
ERROR_TYPE_SERVER = "server_error"


def create_error_response(
    message: str,
    error_type: str = ERROR_TYPE_SERVER,
    param: str | None = None,
    code: str | None = None,
) -> ErrorResponse:
    """Create an error response.

    Args:
        message: Human-readable error message
        error_type: Type of error (see ERROR_TYPE_* constants)
        param: Request field that caused the error (optional)
        code: Error code (optional)

    Returns:
        ErrorResponse object
    """
    return ErrorResponse(error=ErrorDetail(message=message, type=error_type, param=param, code=code))


def invalid_request_error(message: str, param: str | None = None) -> ErrorResponse:
    """Create invalid request error."""
    return create_error_response(message, ERROR_TYPE_INVALID_REQUEST, param=param, code="invalid_input")


def server_error(message: str = "Internal server error") -> ErrorResponse:
    """Create server error."""
    return create_error_response(message, ERROR_TYPE_SERVER, code="internal_error")
