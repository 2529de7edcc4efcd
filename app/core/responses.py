from typing import Any, List, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(code: int, message: str, data: Any = None) -> dict:
    return {"code": code, "message": message, "data": jsonable_encoder(data)}


def success(data: Any = None, message: str = "success") -> JSONResponse:
    return JSONResponse(status_code=200, content=envelope(200, message, data))


def created(data: Any = None, message: str = "created successfully") -> JSONResponse:
    return JSONResponse(status_code=201, content=envelope(201, message, data))


def updated(data: Any = None, message: str = "updated successfully") -> JSONResponse:
    return JSONResponse(status_code=200, content=envelope(200, message, data))


def deleted(message: str = "deleted successfully") -> JSONResponse:
    return JSONResponse(status_code=200, content=envelope(200, message, None))


def page_success(items: List[Any], total: int, page: int, page_size: int) -> JSONResponse:
    """Paged list response: ``data = {list, total, page, page_size}``."""
    return success({
        "list": items,
        "total": total,
        "page": page,
        "page_size": page_size,
    })


def error_response(status_code: int, message: str, data: Any = None, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=envelope(status_code, message, data),
        headers=headers,
    )
