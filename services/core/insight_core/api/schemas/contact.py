"""Contact form schemas."""

from pydantic import BaseModel, Field


class ContactRequest(BaseModel):
    """Request body for the contact form."""

    name: str = Field(..., min_length=1, max_length=128)
    email: str = Field(..., min_length=3, max_length=255)
    message: str = Field(..., min_length=1, max_length=5000)


class ContactResponse(BaseModel):
    """Response body for the contact form."""

    success: bool = True
    message: str = "Your message has been sent."
