import datetime
import json
import sqlite3
import uuid
from contextlib import contextmanager
from typing import Any

from bookcopy.db.models import PROCESSING_STATUSES, get_db_path
from bookcopy.llms.prompts import GenerationType


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def get_db_connection():
    conn = sqlite3.connect(get_db_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def _fetch_one(query: str, params: tuple) -> dict[str, Any] | None:
    with get_db_connection() as conn:
        row = conn.execute(query, params).fetchone()
        return dict(row) if row else None


def _decode_json_column(row: dict[str, Any], column: str) -> dict[str, Any]:
    if row.get(column) is not None:
        row[column] = json.loads(row[column])
    return row


# -----------------------------------------------------------------------------
# Users and bearer tokens
# -----------------------------------------------------------------------------

def insert_user(username: str, email: str, hashed_password: str) -> dict[str, Any]:
    user_id = _new_id()
    ts = _now()
    with get_db_connection() as conn:
        conn.execute(
            """INSERT INTO users (user_id, username, hashed_password, email, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (user_id, username, hashed_password, email, ts, ts),
        )
    return {"user_id": user_id, "username": username, "email": email, "created_at": ts}


def get_user_by_email(email: str) -> dict[str, Any] | None:
    return _fetch_one("SELECT * FROM users WHERE email = ?", (email,))


def get_user_by_username(username: str) -> dict[str, Any] | None:
    return _fetch_one("SELECT * FROM users WHERE username = ?", (username,))


def insert_auth_token(token_hash: str, user_id: str, expires_at: datetime.datetime) -> None:
    with get_db_connection() as conn:
        conn.execute(
            "INSERT INTO auth_tokens (token_hash, user_id, expires_at, created_at) VALUES (?, ?, ?, ?)",
            (token_hash, user_id, expires_at.isoformat(), _now()),
        )


def get_user_for_token(token_hash: str) -> dict[str, Any] | None:
    """Return the user owning a live token; expired tokens are deleted."""
    with get_db_connection() as conn:
        row = conn.execute(
            """SELECT t.expires_at, u.user_id, u.username, u.email
               FROM auth_tokens t JOIN users u ON u.user_id = t.user_id
               WHERE t.token_hash = ?""",
            (token_hash,),
        ).fetchone()
        if row is None:
            return None
        expires_at = datetime.datetime.fromisoformat(row["expires_at"])
        if expires_at <= datetime.datetime.now(datetime.timezone.utc):
            conn.execute("DELETE FROM auth_tokens WHERE token_hash = ?", (token_hash,))
            return None
        return {"user_id": row["user_id"], "username": row["username"], "email": row["email"]}


# -----------------------------------------------------------------------------
# Files and generated outputs
# -----------------------------------------------------------------------------

def insert_file(
    user_id: str,
    file_name: str,
    file_type: str,
    file_size: int,
    storage_path: str,
    processing_status: str = "pending",
    file_id: str | None = None,
) -> dict[str, Any]:
    if processing_status not in PROCESSING_STATUSES:
        raise ValueError(f"Unknown processing status: {processing_status}")
    record = {
        "file_id": file_id or _new_id(),
        "user_id": user_id,
        "file_name": file_name,
        "file_type": file_type,
        "file_size": file_size,
        "storage_path": storage_path,
        "upload_date": _now(),
        "processing_status": processing_status,
    }
    with get_db_connection() as conn:
        conn.execute(
            """INSERT INTO files (
                file_id, user_id, file_name, file_type, file_size,
                storage_path, upload_date, processing_status
            ) VALUES (:file_id, :user_id, :file_name, :file_type, :file_size,
                      :storage_path, :upload_date, :processing_status)""",
            record,
        )
    return record


def get_file(file_id: str) -> dict[str, Any] | None:
    return _fetch_one("SELECT * FROM files WHERE file_id = ?", (file_id,))


def list_files_for_user(user_id: str) -> list[dict[str, Any]]:
    with get_db_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM files WHERE user_id = ? ORDER BY upload_date DESC",
            (user_id,),
        ).fetchall()
        return [dict(row) for row in rows]


def save_ai_output(file_id: str, generation_type: GenerationType, content: str) -> dict[str, Any]:
    """Store one generated text in the file's output row (created on first use)."""
    column = GenerationType(generation_type).value
    value = content
    if column == GenerationType.CATEGORIES.value:
        try:
            value = json.dumps(json.loads(content))
        except ValueError:
            # keep non-JSON answers as a JSON string
            value = json.dumps(content)
    with get_db_connection() as conn:
        conn.execute(
            f"""INSERT INTO ai_outputs (output_id, file_id, {column}, generated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(file_id) DO UPDATE SET
                    {column} = excluded.{column},
                    generated_at = excluded.generated_at""",
            (_new_id(), file_id, value, _now()),
        )
    return get_ai_output(file_id) or {}


def get_ai_output(file_id: str) -> dict[str, Any] | None:
    row = _fetch_one("SELECT * FROM ai_outputs WHERE file_id = ?", (file_id,))
    return _decode_json_column(row, "categories") if row else None


# -----------------------------------------------------------------------------
# Session history and action logs
# -----------------------------------------------------------------------------

def insert_session_history(user_id: str, file_id: str, actions: Any) -> dict[str, Any]:
    record = {
        "session_id": _new_id(),
        "user_id": user_id,
        "file_id": file_id,
        "actions": actions,
        "session_date": _now(),
    }
    with get_db_connection() as conn:
        conn.execute(
            """INSERT INTO session_history (session_id, user_id, file_id, actions, session_date)
               VALUES (?, ?, ?, ?, ?)""",
            (record["session_id"], user_id, file_id, json.dumps(actions), record["session_date"]),
        )
    return record


def get_session_history(user_id: str) -> list[dict[str, Any]]:
    with get_db_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM session_history WHERE user_id = ? ORDER BY session_date DESC",
            (user_id,),
        ).fetchall()
        return [_decode_json_column(dict(row), "actions") for row in rows]


def insert_log(
    user_id: str,
    action_type: str,
    description: str,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    record = {
        "log_id": _new_id(),
        "user_id": user_id,
        "action_type": action_type,
        "description": description,
        "metadata": metadata,
        "timestamp": _now(),
    }
    with get_db_connection() as conn:
        conn.execute(
            """INSERT INTO logs (log_id, user_id, action_type, description, metadata, timestamp)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                record["log_id"],
                user_id,
                action_type,
                description,
                json.dumps(metadata) if metadata is not None else None,
                record["timestamp"],
            ),
        )
    return record


def get_logs_for_user(user_id: str, limit: int = 20) -> list[dict[str, Any]]:
    with get_db_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM logs WHERE user_id = ? ORDER BY timestamp DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
        return [_decode_json_column(dict(row), "metadata") for row in rows]
