"""
User endpoints under /api/v1/user: login, refresh_token, logout, me, user info.
Authorization failures come back as envelope code 401 with HTTP 200, like the SOJ backend.
"""
import logging

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel
from sqlalchemy.orm import Session

from soj_dev_server.config import (
    ACCESS_TOKEN_HEADER,
    CODE_BAD_REQUEST,
    CODE_NOT_FOUND,
    CODE_UNAUTHORIZED,
    REFRESH_TOKEN_HEADER,
)
from soj_dev_server.database import get_db
from soj_dev_server.envelope import fail, ok
from soj_dev_server.models import User
from soj_dev_server.seed import verify_password
from soj_dev_server.tokens import (
    find_refresh_token,
    issue_access_token,
    issue_refresh_token,
    verify_access_token,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/user")


class LoginRequest(BaseModel):
    username: str
    password: str


def access_claims(token: str | None = Header(None, alias=ACCESS_TOKEN_HEADER)) -> dict | None:
    """Dependency: verified access token claims, or None."""
    return verify_access_token(token)


def _user_view(user: User) -> dict:
    return {"id": user.id, "username": user.username, "email": user.email, "role": user.role}


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == body.username).first()
    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Login failed for username=%s", body.username)
        return fail(CODE_BAD_REQUEST, "invalid username or password")
    access_token = issue_access_token(user)
    refresh_token = issue_refresh_token(db, user)
    logger.info("Login ok: user_id=%s", user.id)
    return ok({"access_token": access_token, "refresh_token": refresh_token})


@router.post("/refresh_token")
def refresh_token(
    token: str | None = Header(None, alias=REFRESH_TOKEN_HEADER),
    db: Session = Depends(get_db),
):
    """Exchange a refresh token for a new access token; rotates the refresh token."""
    rt = find_refresh_token(db, token)
    if rt is None:
        return fail(CODE_UNAUTHORIZED, "refresh token expired")
    user = db.query(User).filter(User.id == rt.user_id).first()
    if user is None:
        return fail(CODE_UNAUTHORIZED, "refresh token expired")
    rt.revoked = True
    db.commit()
    new_refresh = issue_refresh_token(db, user)
    logger.info("Refresh ok: user_id=%s (refresh token rotated)", user.id)
    return ok({"access_token": issue_access_token(user), "refresh_token": new_refresh})


@router.get("/logout")
def logout(
    token: str | None = Header(None, alias=REFRESH_TOKEN_HEADER),
    db: Session = Depends(get_db),
):
    """Revoke the presented refresh token. Unknown tokens are ignored."""
    rt = find_refresh_token(db, token)
    if rt is not None:
        rt.revoked = True
        db.commit()
        logger.info("Logout: refresh token revoked for user_id=%s", rt.user_id)
    return ok()


@router.get("/me")
def me(claims: dict | None = Depends(access_claims)):
    """Identity from the access token; no database access."""
    if claims is None:
        return fail(CODE_UNAUTHORIZED, "unauthorized")
    return ok({"id": claims.get("user_id"), "role": claims.get("role")})


@router.get("/{user_id}")
def user_info(user_id: int, claims: dict | None = Depends(access_claims), db: Session = Depends(get_db)):
    if claims is None:
        return fail(CODE_UNAUTHORIZED, "unauthorized")
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return fail(CODE_NOT_FOUND, "user not found")
    return ok(_user_view(user))
