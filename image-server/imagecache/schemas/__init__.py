"""Pydantic schemas used across the project."""

from pydantic import BaseModel, Field


class UploadedFile(BaseModel):
    originalName: str
    filename: str


class UploadResponse(BaseModel):
    message: str
    files: list[UploadedFile] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    detail: str


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Missing or malformed parameters"},
    403: {"model": ErrorResponse, "description": "Presigned URL rejected"},
    404: {"model": ErrorResponse, "description": "Image not found"},
    500: {"model": ErrorResponse, "description": "Image processing failed"},
}
