"""
Standard API response helpers.

Every response shares the envelope {success, data | error, timestamp}.

Example:
    from common.utils import success_response

    @app.get("/status")
    async def status():
        return success_response({"status": "healthy"})
"""

from datetime import datetime, timezone
from typing import Any, Optional, Dict


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(
    data: Any = None,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a standard success response.

    Args:
        data: The response data (can be dict, list, or any serializable type)
        message: Optional success message

    Returns:
        Dictionary with success=True, optional data/message and a timestamp
    """
    response: Dict[str, Any] = {"success": True}

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    response["timestamp"] = _now_iso()
    return response


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Any] = None,
    errors: Optional[list] = None,
) -> Dict[str, Any]:
    """
    Create a standard error response.

    Args:
        message: Human-readable error message
        code: Machine-readable error code (e.g., "CONVERSATION_NOT_FOUND")
        details: Additional error details
        errors: List of specific errors (for validation errors)

    Returns:
        Dictionary with success=False, error info and a timestamp
    """
    error: Dict[str, Any] = {"message": message}

    if code:
        error["code"] = code

    if details is not None:
        error["details"] = details

    if errors:
        error["errors"] = errors

    return {"success": False, "error": error, "timestamp": _now_iso()}


def paginated_response(
    items: list,
    total: int,
    page: int = 1,
    limit: int = 20,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a paginated success response.

    Args:
        items: List of items for current page
        total: Total number of items across all pages
        page: Current page number (1-indexed)
        limit: Items per page
        message: Optional success message

    Returns:
        Dictionary with success=True, paginated data, and pagination metadata
    """
    total_pages = (total + limit - 1) // limit if limit > 0 else 0

    response: Dict[str, Any] = {
        "success": True,
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": total_pages,
            "hasNextPage": page < total_pages,
            "hasPreviousPage": page > 1,
        },
    }

    if message:
        response["message"] = message

    response["timestamp"] = _now_iso()
    return response
