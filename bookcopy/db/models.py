import sqlite3
from pathlib import Path

from bookcopy.core.config import get_settings

PROCESSING_STATUSES = ("pending", "processing", "complete", "error")

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id TEXT PRIMARY KEY,
        username TEXT UNIQUE NOT NULL,
        hashed_password TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS auth_tokens (
        token_hash TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        expires_at TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS files (
        file_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        file_name TEXT NOT NULL,
        file_type TEXT NOT NULL,
        file_size INTEGER NOT NULL,
        storage_path TEXT NOT NULL,
        upload_date TEXT NOT NULL,
        processing_status TEXT NOT NULL DEFAULT 'pending'
            CHECK (processing_status IN ('pending', 'processing', 'complete', 'error'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ai_outputs (
        output_id TEXT PRIMARY KEY,
        file_id TEXT UNIQUE NOT NULL REFERENCES files(file_id) ON DELETE CASCADE,
        blurb TEXT,
        description TEXT,
        keywords TEXT,
        categories TEXT,
        foreword TEXT,
        analysis TEXT,
        generated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS session_history (
        session_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        file_id TEXT NOT NULL,
        actions TEXT,
        session_date TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS logs (
        log_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        action_type TEXT NOT NULL,
        description TEXT,
        metadata TEXT,
        timestamp TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_files_user_id ON files(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_files_upload_date ON files(upload_date)",
    "CREATE INDEX IF NOT EXISTS idx_session_user_id ON session_history(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_session_file_id ON session_history(file_id)",
    "CREATE INDEX IF NOT EXISTS idx_logs_user_id ON logs(user_id)",
)


def get_db_path() -> Path:
    return Path(get_settings().database_path)


def init_db() -> None:
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        for statement in SCHEMA:
            conn.execute(statement)
        conn.commit()
