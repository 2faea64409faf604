"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


def _as_text(value) -> Optional[str]:
    # Catalog documents are seeded outside the API and may hold numbers
    return str(value) if value is not None else None


class BookResponse(BaseModel):
    """Book response model for API."""
    id: str = Field(..., description="Unique book identifier")
    title: Optional[str] = Field(None, description="Book title")
    author: Optional[str] = Field(None, description="Book author")
    isbn: Optional[str] = Field(None, description="Book ISBN")
    review: str = Field("", description="Free-text review")

    @classmethod
    def from_document(cls, document: dict) -> "BookResponse":
        """Build a response from a raw MongoDB document."""
        return cls(
            id=str(document["_id"]),
            title=_as_text(document.get("title")),
            author=_as_text(document.get("author")),
            isbn=_as_text(document.get("isbn")),
            review=_as_text(document.get("review")) or "",
        )


class ReviewUpdateRequest(BaseModel):
    """Body of a review update. Numbers are stored as their text."""
    model_config = {"coerce_numbers_to_str": True}

    review: str = Field(..., description="New review text")


class RegisterRequest(BaseModel):
    """Body of a user registration."""
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address used to log in")
    password: str = Field(..., description="Plaintext password, hashed before storage")


class LoginRequest(BaseModel):
    """Body of a login attempt."""
    email: str = Field(..., description="Registered email address")
    password: str = Field(..., description="Plaintext password")


class MessageResponse(BaseModel):
    """Acknowledgment returned by successful mutations."""
    message: str = Field(..., description="Human-readable result")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
