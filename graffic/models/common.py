"""
Common Pydantic models for the Graffic API
"""
from pydantic import BaseModel
from datetime import datetime


class HealthResponse(BaseModel):
    """
    Health check response model
    """
    status: str
    message: str
    timestamp: datetime
    version: str


class ErrorResponse(BaseModel):
    """
    Error response model
    """
    success: bool = False
    error: str
    message: str
