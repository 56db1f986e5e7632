"""
Access tokens (RS256 JWT) and opaque refresh tokens for the dev server.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from sqlalchemy.orm import Session

from soj_dev_server.config import ACCESS_TOKEN_EXPIRES, ISSUER, REFRESH_TOKEN_EXPIRES
from soj_dev_server.keys import KID, get_public_key, get_signing_key
from soj_dev_server.models import RefreshToken, User

logger = logging.getLogger(__name__)


def issue_access_token(user: User) -> str:
    """Claims: sub / user_id (subject id) and role (authorization level)."""
    now = datetime.now(timezone.utc)
    payload = {
        "iss": ISSUER,
        "sub": str(user.id),
        "user_id": user.id,
        "role": user.role,
        "exp": int((now + timedelta(seconds=ACCESS_TOKEN_EXPIRES)).timestamp()),
        "iat": int(now.timestamp()),
    }
    token = jwt.encode(payload, get_signing_key(), algorithm="RS256", headers={"kid": KID, "typ": "JWT"})
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def verify_access_token(token: str | None) -> dict | None:
    """Decoded claims if signature, issuer and expiry check out, else None."""
    if not token:
        return None
    try:
        return jwt.decode(
            token,
            get_public_key(),
            algorithms=["RS256"],
            issuer=ISSUER,
            options={"verify_exp": True, "verify_iss": True},
        )
    except jwt.InvalidTokenError as e:
        logger.debug("Access token invalid: %s", e)
        return None


def issue_refresh_token(db: Session, user: User) -> str:
    value = secrets.token_urlsafe(48)
    db.add(
        RefreshToken(
            token=value,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=REFRESH_TOKEN_EXPIRES),
        )
    )
    db.commit()
    return value


def find_refresh_token(db: Session, value: str | None) -> RefreshToken | None:
    """Stored refresh token if it exists, is not revoked and has not expired."""
    if not value:
        return None
    rt = db.query(RefreshToken).filter(RefreshToken.token == value).first()
    if rt is None or not rt.usable():
        return None
    return rt
