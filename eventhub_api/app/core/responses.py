"""
Response envelopes and pagination helpers.

Every successful API response has the shape
``{"success": true, "message"?: str, "data": ...}`` and every error
``{"error": {"message": str, "status": int}}``.
"""

import math
from typing import Any, Dict, Optional, Tuple


def format_success(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    return body


def format_error(message: str, status: int = 400, **extra: Any) -> Dict[str, Any]:
    error: Dict[str, Any] = {"message": message, "status": status}
    error.update(extra)
    return {"error": error}


def paginate(page: int, limit: int) -> Tuple[int, int]:
    """Translate a 1-based page number into ``(limit, offset)``."""
    return limit, (page - 1) * limit


def pagination_meta(total: int, page: int, limit: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }
