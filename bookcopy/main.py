import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bookcopy.core.config import get_settings
from bookcopy.core.errors import AuthError, DuplicateUser, FileParseError, GenerationFailed
from bookcopy.core.generation_config import GenerationConfigTable, get_generation_config
from bookcopy.db.models import init_db
from bookcopy.db.session import (
    get_ai_output,
    get_db_connection,
    get_file,
    get_logs_for_user,
    get_session_history,
    insert_file,
    insert_log,
    insert_session_history,
    list_files_for_user,
    save_ai_output,
)
from bookcopy.llms.base import BaseLLM
from bookcopy.llms.openai_client import OpenAIClient
from bookcopy.schemas.request import (
    GenerateRequest,
    LoginRequest,
    LogRequest,
    RegisterRequest,
    SessionRequest,
)
from bookcopy.schemas.response import AuthResponse, GenerateResponse, UploadResponse
from bookcopy.services.auth_service import authenticate, register_user, resolve_token
from bookcopy.services.file_analysis import analyze_document
from bookcopy.services.file_parser import extract_text
from bookcopy.services.generation_service import generate
from bookcopy.utils.file_utils import get_file_extension, validate_uploaded_file
from bookcopy.utils.logger import logger, setup_logging

_bearer = HTTPBearer(auto_error=False)


def check_db_connected() -> bool:
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1")
        return True
    except Exception:
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings().log_level)
    init_db()
    yield


app = FastAPI(title="BookCopy Studio", lifespan=lifespan)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> dict:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing authorization. Please log in.")
    try:
        return resolve_token(credentials.credentials)
    except AuthError:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")


async def get_completion_client():
    client = OpenAIClient()
    try:
        yield client
    finally:
        await client.close()


def _owned_file(file_id: str, user: dict) -> dict:
    record = get_file(file_id)
    if record is None or record["user_id"] != user["user_id"]:
        raise HTTPException(status_code=404, detail="File not found")
    return record


@app.get("/")
async def root():
    return {
        "message": "BookCopy Studio API",
        "docs": "/docs",
        "health": "/health",
        "upload": "POST /upload",
        "generate": "POST /generate",
    }


@app.get("/health")
async def get_health():
    db_ok = check_db_connected()
    key = get_settings().openai_api_key
    return {
        "status": "ok" if db_ok else "unhealthy",
        "database": "connected" if db_ok else "failed",
        "openai": "configured" if (key and key.strip()) else "missing_key",
    }


@app.post("/auth/register", response_model=AuthResponse, status_code=201)
async def post_register(body: RegisterRequest) -> AuthResponse:
    try:
        user, token = register_user(body.username, body.email, body.password)
    except DuplicateUser as e:
        raise HTTPException(status_code=409, detail=str(e))
    return AuthResponse(message="Registration successful.", token=token, user=user)


@app.post("/auth/login", response_model=AuthResponse)
async def post_login(body: LoginRequest) -> AuthResponse:
    try:
        user, token = authenticate(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return AuthResponse(message="Login successful.", token=token, user=user)


@app.post("/upload", response_model=UploadResponse)
async def post_upload(
    file: UploadFile = File(...),
    user: dict = Depends(get_current_user),
) -> UploadResponse:
    settings = get_settings()
    validation = validate_uploaded_file(file.size or 0, file.content_type, settings.max_upload_bytes)
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.error)
    # one byte past the limit is enough to tell an oversized body apart
    data = await file.read(settings.max_upload_bytes + 1)
    validation = validate_uploaded_file(len(data), file.content_type, settings.max_upload_bytes)
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.error)
    ext = get_file_extension(file.filename)
    if ext not in (".docx", ".pdf"):
        raise HTTPException(status_code=400, detail="Unsupported file extension.")

    file_id = str(uuid.uuid4())
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    storage_path = upload_dir / f"{file_id}{ext}"
    storage_path.write_bytes(data)
    file_name = file.filename or "Unknown"

    try:
        extracted_text = await asyncio.to_thread(extract_text, ext, data)
    except FileParseError as e:
        insert_file(
            user["user_id"], file_name, file.content_type or "Unknown", len(data),
            str(storage_path), processing_status="error", file_id=file_id,
        )
        insert_log(user["user_id"], "upload", f"Failed to process {file_name}", {"file_id": file_id})
        raise HTTPException(status_code=400, detail=str(e))

    analysis = analyze_document(extracted_text)
    record = insert_file(
        user["user_id"], file_name, file.content_type or "Unknown", len(data),
        str(storage_path), processing_status="complete", file_id=file_id,
    )
    insert_log(
        user["user_id"],
        "upload",
        f"Uploaded {file_name}",
        {"file_id": file_id, "word_count": analysis.word_count},
    )
    logger.info("file_uploaded", extra={"file_id": file_id, "size": len(data), "ext": ext})
    return UploadResponse(
        message="File uploaded and processed successfully.",
        file=record,
        extracted_text=extracted_text,
        technical_analysis=analysis,
    )


@app.get("/files")
async def get_files(user: dict = Depends(get_current_user)) -> list:
    return list_files_for_user(user["user_id"])


@app.get("/files/{file_id}/outputs")
async def get_file_outputs(file_id: str, user: dict = Depends(get_current_user)) -> dict:
    _owned_file(file_id, user)
    return get_ai_output(file_id) or {"file_id": file_id}


@app.post("/generate", response_model=GenerateResponse)
async def post_generate(
    body: GenerateRequest,
    user: dict = Depends(get_current_user),
    client: BaseLLM = Depends(get_completion_client),
    config: GenerationConfigTable = Depends(get_generation_config),
) -> GenerateResponse:
    if body.file_id:
        _owned_file(body.file_id, user)
    start = time.perf_counter()
    try:
        output = await generate(body.type, body.extracted_text, config=config, client=client)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationFailed as e:
        insert_log(user["user_id"], "generate", f"Generation of {body.type.value} failed")
        raise HTTPException(status_code=502, detail=str(e))
    latency_ms = (time.perf_counter() - start) * 1000
    if body.file_id:
        save_ai_output(body.file_id, body.type, output)
    insert_log(
        user["user_id"],
        "generate",
        f"Generated {body.type.value}",
        {"file_id": body.file_id, "output_chars": len(output)},
    )
    return GenerateResponse(
        message="Content generated successfully.",
        type=body.type.value,
        output=output,
        latency_ms=round(latency_ms, 2),
        file_id=body.file_id,
    )


@app.post("/logs")
async def post_log(body: LogRequest, user: dict = Depends(get_current_user)) -> dict:
    entry = insert_log(user["user_id"], body.action_type, body.description, body.metadata)
    return {"message": "Log recorded successfully.", "log": entry}


@app.get("/logs")
async def get_logs(
    limit: int = Query(20, ge=1, le=200),
    user: dict = Depends(get_current_user),
) -> list:
    return get_logs_for_user(user["user_id"], limit)


@app.post("/session")
async def post_session(body: SessionRequest, user: dict = Depends(get_current_user)) -> dict:
    _owned_file(body.file_id, user)
    record = insert_session_history(user["user_id"], body.file_id, body.actions)
    return {"message": "Session recorded successfully.", "session": record}


@app.get("/session")
async def get_session(user: dict = Depends(get_current_user)) -> dict:
    return {"message": "Session history retrieved.", "sessions": get_session_history(user["user_id"])}
