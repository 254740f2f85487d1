"""Upload metadata schemas - checked before any file is stored"""

from typing import Literal

from pydantic import BaseModel, field_validator

from ...security_utils import sanitize_filename

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class FileUpload(BaseModel):
    filename: str
    mime_type: str
    size: int

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v):
        if not v or not v.strip():
            raise ValueError("Filename is required")
        return sanitize_filename(v)

    @field_validator("size")
    @classmethod
    def validate_size(cls, v):
        if v < 0:
            raise ValueError("File size cannot be negative")
        if v > MAX_UPLOAD_BYTES:
            raise ValueError("File size cannot exceed 10MB")
        return v


class PdfUpload(FileUpload):
    mime_type: Literal["application/pdf"]

    @field_validator("mime_type", mode="before")
    @classmethod
    def require_pdf(cls, v):
        if v != "application/pdf":
            raise ValueError("Only PDF files are allowed")
        return v
