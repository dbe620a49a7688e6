"""Standard API response models."""

from typing import TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class ApiResponse[T](BaseModel):
    """Standard API response envelope."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    code: int = 200
    message: str = "Operation successful"
    data: T | None = None
    meta: dict | None = None

    @classmethod
    def success(
        cls,
        data: T = None,
        message: str = "Operation successful",
        code: int = 200,
        meta: dict | None = None,
    ) -> "ApiResponse[T]":
        return cls(code=code, message=message, data=data, meta=meta)


class ErrorResponse(BaseModel):
    """Error body: {"error": {"code", "message", "details"?}}."""

    error: dict

    @classmethod
    def create(
        cls,
        code: str,
        message: str,
        details: dict | None = None,
    ) -> "ErrorResponse":
        error_dict = {"code": code, "message": message}
        if details:
            error_dict["details"] = details
        return cls(error=error_dict)
