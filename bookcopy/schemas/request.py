from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from bookcopy.llms.prompts import GenerationType

# bcrypt only hashes the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        return value


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class GenerateRequest(BaseModel):
    type: GenerationType
    # camelCase accepted for clients of the previous API
    extracted_text: str = Field(..., validation_alias=AliasChoices("extracted_text", "extractedText"))
    file_id: str | None = Field(None, validation_alias=AliasChoices("file_id", "fileId"))


class LogRequest(BaseModel):
    action_type: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    metadata: dict[str, Any] | None = None


class SessionRequest(BaseModel):
    file_id: str = Field(..., min_length=1)
    actions: dict[str, Any] | list[Any]
