"""
Schemas for the outbound email endpoint.
"""
from typing import Optional
from pydantic import EmailStr, field_validator

from kny_api.schemas.common import CamelModel


class SendEmailRequest(CamelModel):
    to: Optional[EmailStr] = None
    subject: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None

    @field_validator("subject")
    @classmethod
    def single_line_subject(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and ("\r" in v or "\n" in v):
            raise ValueError("Subject must not contain line breaks")
        return v
