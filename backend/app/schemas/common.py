"""Response envelope shared by every HTTP route."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """``{success, message, data?}`` wrapper returned by the API."""

    success: bool = Field(default=True, description="Whether the request succeeded")
    message: str = Field(..., description="Human readable outcome")
    data: DataT | None = Field(default=None, description="Operation result, if any")


def ok(message: str, data: DataT | None = None) -> ApiResponse[DataT]:
    return ApiResponse[DataT](success=True, message=message, data=data)
