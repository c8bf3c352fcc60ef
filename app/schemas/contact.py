"""
Pydantic schemas for the contact form endpoint.
"""
import re

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ContactRequest(BaseModel):
    """Message submitted through the public contact form."""

    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=320)
    message: str = Field(..., max_length=5000)

    @field_validator("name", "email", "message")
    @classmethod
    def require_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("All fields are required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v


class ContactResponse(BaseModel):
    """Response after the message was handed to the email relay."""

    success: bool = True
    message: str = "Message sent successfully!"
