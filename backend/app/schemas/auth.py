"""
Pydantic schemas for the login gate.
"""
from pydantic import BaseModel, Field, StrictStr
from typing import Optional


class AuthRequest(BaseModel):
    """Login attempt. Kept permissive so the gate can answer with its own errors."""
    password: Optional[StrictStr] = Field(None, description="Shared secret")


class AuthResponse(BaseModel):
    """Successful login."""
    success: bool = True
    token: Optional[str] = Field(None, description="Signed upload token (only when tokens are required)")

    class Config:
        json_schema_extra = {
            "example": {"success": True}
        }


class ErrorResponse(BaseModel):
    """Body of every failed request."""
    success: bool = False
    error: str

    class Config:
        json_schema_extra = {
            "example": {"success": False, "error": "Invalid password."}
        }
