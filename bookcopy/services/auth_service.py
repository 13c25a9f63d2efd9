import datetime
from typing import Any

from bookcopy.core.config import get_settings
from bookcopy.core.errors import AuthError, DuplicateUser
from bookcopy.core.security import generate_token, hash_password, hash_token, verify_password
from bookcopy.db.session import (
    get_user_by_email,
    get_user_by_username,
    get_user_for_token,
    insert_auth_token,
    insert_user,
)
from bookcopy.utils.logger import logger


def _public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {"user_id": user["user_id"], "username": user["username"], "email": user["email"]}


def issue_token(user_id: str) -> str:
    token = generate_token()
    ttl = datetime.timedelta(minutes=get_settings().token_ttl_minutes)
    insert_auth_token(hash_token(token), user_id, datetime.datetime.now(datetime.timezone.utc) + ttl)
    return token


def register_user(username: str, email: str, password: str) -> tuple[dict[str, Any], str]:
    if get_user_by_email(email):
        raise DuplicateUser("Email already registered")
    if get_user_by_username(username):
        raise DuplicateUser("Username already taken")
    user = insert_user(username, email, hash_password(password))
    logger.info("user_registered", extra={"user_id": user["user_id"]})
    return _public_user(user), issue_token(user["user_id"])


def authenticate(email: str, password: str) -> tuple[dict[str, Any], str]:
    user = get_user_by_email(email)
    if not user or not verify_password(password, user["hashed_password"]):
        logger.warning("login_failed", extra={"email": email})
        raise AuthError("Invalid credentials")
    logger.info("user_logged_in", extra={"user_id": user["user_id"]})
    return _public_user(user), issue_token(user["user_id"])


def resolve_token(token: str) -> dict[str, Any]:
    if not token:
        raise AuthError("Missing token")
    user = get_user_for_token(hash_token(token))
    if user is None:
        raise AuthError("Invalid or expired token")
    return user
