"""
Pydantic models for the public contact endpoint.

Models:
  Submission       validated, trimmed form fields (request scoped)
  ContactResponse  JSON body returned for every request
"""

from pydantic import BaseModel


class Submission(BaseModel):
    """A contact-form submission after trimming and validation."""

    name: str
    email: str
    phone: str = ""
    message: str


class ContactResponse(BaseModel):
    """Response body shape shared by every outcome of POST /api/contact."""

    ok: bool
    message: str
