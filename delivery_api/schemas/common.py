from pydantic import BaseModel
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Envelope shared by every endpoint.
    Routes serialise it with response_model_exclude_none so unset keys disappear.
    """
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[Any] = None
    token: Optional[str] = None
