from typing import Any

from pydantic import BaseModel

from bookcopy.services.file_analysis import DocumentAnalysis


class UserOut(BaseModel):
    user_id: str
    username: str
    email: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserOut


class UploadResponse(BaseModel):
    message: str
    file: dict[str, Any]
    extracted_text: str
    technical_analysis: DocumentAnalysis


class GenerateResponse(BaseModel):
    message: str
    type: str
    output: str
    latency_ms: float
    file_id: str | None = None
