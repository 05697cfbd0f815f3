from pydantic import BaseModel, Field
from typing import Optional, Any, List, Generic, TypeVar

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """
    Standard error response structure.
    """
    error: str
    code: str
    details: Optional[Any] = None


class ApiResult(BaseModel, Generic[T]):
    """
    Result envelope for form-style endpoints that report
    validation problems as messages instead of errors.
    """
    success: bool = False
    error: bool = True
    data: Optional[T] = None
    messages: List[str] = Field(default_factory=list)
