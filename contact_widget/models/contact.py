"""Contact submission Pydantic models"""
from pydantic import BaseModel
from typing import Optional


class ContactSubmitResponse(BaseModel):
    """Successful submission response"""
    success: bool = True
    message: str
    id: str


class ErrorResponse(BaseModel):
    """Error body returned on any non-2xx answer"""
    error: str
    details: Optional[str] = None
