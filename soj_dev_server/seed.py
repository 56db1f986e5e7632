"""
Password hashing and optional seed user from environment. No hardcoded credentials.
Set SOJ_DEV_SEED_USER + SOJ_DEV_SEED_PASSWORD (and optionally SOJ_DEV_SEED_ROLE).
"""
import logging
import os

import bcrypt
from sqlalchemy.orm import Session

from soj_dev_server.config import ROLE_USER
from soj_dev_server.models import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")[:72]
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


def create_user(db: Session, username: str, password: str, role: int = ROLE_USER, email: str | None = None) -> User:
    user = User(username=username, password_hash=hash_password(password), role=role, email=email)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def seed_from_env(db: Session) -> None:
    """Create one user from env if set and missing."""
    seed_user = os.environ.get("SOJ_DEV_SEED_USER")
    seed_password = os.environ.get("SOJ_DEV_SEED_PASSWORD")
    if not (seed_user and seed_password):
        return
    if db.query(User).filter(User.username == seed_user).first() is not None:
        logger.debug("User already exists: %s", seed_user)
        return
    role = int(os.environ.get("SOJ_DEV_SEED_ROLE", str(ROLE_USER)))
    create_user(db, seed_user, seed_password, role=role)
    logger.info("Seeded user: %s (role=%s)", seed_user, role)
