import os
import hmac
import hashlib
import secrets
import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from models import User
from storage import DatabaseStorage

logger = logging.getLogger(__name__)

DEFAULT_SESSION_SECRET = "dev-session-secret-change-me"
SESSION_SECRET = os.getenv("SESSION_SECRET", DEFAULT_SESSION_SECRET)
ADMIN_EMAILS = {e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()}

PBKDF2_ITERATIONS = 260_000
SESSION_USER_KEY = "user_id"


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS).hex()
    return f"{salt}${digest}"


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash or "$" not in password_hash:
        return False
    salt, expected = password_hash.split("$", 1)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS).hex()
    return hmac.compare_digest(digest, expected)


def role_for_email(email: str) -> str:
    return "admin" if email.lower() in ADMIN_EMAILS else "learner"


def login(storage: DatabaseStorage, email: str, password: str, **profile) -> User:
    """Authenticate by email and password; the first login creates the account"""
    email = email.strip().lower()
    user = storage.get_user_by_email(email)
    if user is None:
        user = storage.upsert_user(
            email,
            password_hash=hash_password(password),
            role=role_for_email(email),
            **profile,
        )
        storage.commit()
        logger.info(f"Created user {user.id} ({user.role})")
        return user

    if not verify_password(password, user.password_hash):
        raise HTTPException(401, "Invalid email or password")

    user = storage.upsert_user(email, **profile)
    storage.commit()
    return user


def start_session(request: Request, user: User):
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def end_session(request: Request):
    request.session.clear()


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise HTTPException(401, "Unauthorized")

    user = DatabaseStorage(db).get_user(user_id)
    if user is None:
        request.session.clear()
        raise HTTPException(401, "Unauthorized")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(403, "Admin access required")
    return user
