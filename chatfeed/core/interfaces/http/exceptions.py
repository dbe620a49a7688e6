"""HTTP exception handlers.

领域异常通过 http_status_code / error_code 类属性决定响应，
统一输出 {"error": {"code", "message"}} 结构。
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from chatfeed.core.domain.exceptions import DomainException
from chatfeed.core.interfaces.http.response import ErrorResponse


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.create(code=code, message=message).model_dump(),
    )


async def domain_exception_handler(
    _request: Request, exc: DomainException
) -> JSONResponse:
    """Handle domain exceptions."""
    status_code = getattr(exc, "http_status_code", 400)
    error_code = getattr(exc, "error_code", "DOMAIN_ERROR")
    if status_code >= 500:
        logger.error(f"Domain error {error_code}: {exc.message}")
    return _error_response(status_code, error_code, exc.message)


async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal error occurred",
    )
