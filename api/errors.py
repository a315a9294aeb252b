"""
Standardized error responses for the sync API.

All API errors should use these functions to ensure consistent response format.
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


# Error codes by category
ERROR_CODES = {
    # Auth errors
    "AUTH_002": "Invalid credential",

    # Validation errors
    "VAL_001": "Invalid request body",
    "VAL_005": "Request body too large",

    # Backup data errors
    "DATA_001": "No backup exists on the server yet",
    "DATA_002": "Failed to write backup",
    "DATA_003": "Failed to read backup",

    # System errors
    "SYS_001": "Resource not found",
    "SYS_003": "Internal server error",
    "SYS_004": "Method not allowed",
}

# HTTP status -> default error code
STATUS_ERROR_CODES = {
    400: "VAL_001",
    403: "AUTH_002",
    404: "SYS_001",
    405: "SYS_004",
    413: "VAL_005",
    500: "SYS_003",
}


def make_error_response(
    error_code: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Create a standardized error response dict.

    Args:
        error_code: Error code from ERROR_CODES
        message: Custom error message (uses default if not provided)
        details: Additional error details

    Returns:
        Standardized error response dict
    """
    default_message = ERROR_CODES.get(error_code, "Unknown error")

    response = {
        "success": False,
        "error": {
            "code": error_code,
            "message": message or default_message,
        }
    }

    if details:
        response["error"]["details"] = details

    return response


def fastapi_error(
    error_code: str,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    http_status: int = 400
) -> JSONResponse:
    """Create a FastAPI JSON error response.

    Example:
        if body_too_large:
            return fastapi_error("VAL_005", http_status=413)
    """
    response = make_error_response(error_code, message, details)
    return JSONResponse(content=response, status_code=http_status)

