from pathlib import PurePath

from pydantic import BaseModel

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PDF_MIME_TYPE = "application/pdf"
ALLOWED_MIME_TYPES = (DOCX_MIME_TYPE, PDF_MIME_TYPE)


class FileValidationResult(BaseModel):
    valid: bool
    error: str | None = None


def validate_uploaded_file(size: int, mimetype: str | None, max_file_size: int) -> FileValidationResult:
    if size > max_file_size:
        limit_mb = max_file_size / (1024 * 1024)
        return FileValidationResult(valid=False, error=f"File exceeds the {limit_mb:g}MB limit.")
    if (mimetype or "") not in ALLOWED_MIME_TYPES:
        return FileValidationResult(valid=False, error="Unsupported file type. Upload DOCX or PDF only.")
    return FileValidationResult(valid=True)


def get_file_extension(filename: str | None) -> str:
    return PurePath(filename or "").suffix.lower()
