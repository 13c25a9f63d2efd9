import hashlib
import secrets

import bcrypt

from bookcopy.core.config import Settings, get_settings
from bookcopy.core.errors import MissingCredential


def require_openai_key(settings: Settings | None = None) -> str:
    key = (settings or get_settings()).openai_api_key
    if not key or not key.strip():
        raise MissingCredential("OPENAI_API_KEY")
    return key.strip()


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
