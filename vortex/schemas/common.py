from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the mobile client."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[DataT]):
    """Response envelope shared by the digest endpoints."""

    success: bool = True
    data: DataT | None = None
    message: str | None = None
    error: str | None = None


class Pagination(CamelModel):
    """Pagination metadata for list responses."""

    total: int
    limit: int
    offset: int


class PaginatedResponse(ApiResponse[DataT], Generic[DataT]):
    """Envelope with pagination metadata."""

    pagination: Pagination
