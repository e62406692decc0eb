"""
Common schemas used across the API
"""
from typing import Optional, Generic, TypeVar, Any
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Model mirrored from the Ads Platform API (camelCase on the wire)"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """Serialize for a request body"""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ResponseBase(BaseModel):
    """Base response model"""
    success: bool = True
    message: Optional[str] = None


class DataResponse(ResponseBase, Generic[T]):
    """Response with data"""
    data: Optional[T] = None
    meta: Optional[Any] = None  # Additional metadata


class ErrorResponse(BaseModel):
    """Error response"""
    success: bool = False
    error: str
    detail: Optional[Any] = None
