from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    status_code: int
    data: T
    message: str
    success: bool = True


class ErrorResponse(CamelModel):
    status_code: int
    message: str
    success: bool = False
    errors: list[Any] = []


class Page(CamelModel, Generic[T]):
    items: list[T]
    page: int
    limit: int
    total_pages: int
    total_items: int


def respond(data: Any, message: str, status_code: int = 200) -> ApiResponse:
    return ApiResponse(status_code=status_code, data=data, message=message)
