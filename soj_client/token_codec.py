"""
Local decoding of access token claims (subject id, role).

Trust boundary: the signature is NOT verified here. The server that issued the token is the
only authority on it. Decoded claims are advisory and only drive client-side UI gating
(e.g. showing admin controls); never use them for anything the server must enforce.
"""
import json
import logging
from dataclasses import dataclass

from jwt.utils import base64url_decode

logger = logging.getLogger(__name__)

# Role levels (authorization_level claim)
ROLE_BANNED = -1
ROLE_USER = 1
ROLE_ADMIN = 2
ROLE_ROOT = 3

ROLE_NAMES = {
    ROLE_BANNED: "banned",
    ROLE_USER: "user",
    ROLE_ADMIN: "admin",
    ROLE_ROOT: "root",
}

# Claim names tried in order for the subject id
_SUBJECT_CLAIMS = ("user_id", "id", "sub")
_ROLE_CLAIM = "role"


@dataclass(frozen=True)
class TokenClaims:
    subject_id: int | None
    authorization_level: int | None


def _as_int(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        # json gives inf/nan for 1e400, Infinity, NaN
        return int(value) if value.is_integer() else None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def decode(token: str | None) -> TokenClaims | None:
    """
    Decode the payload (middle) segment of a three-part JWT without verification.
    Header and signature segments are not looked at.
    Returns None for anything malformed; never raises.
    """
    if not token or not isinstance(token, str) or token.count(".") != 2:
        return None
    try:
        payload = json.loads(base64url_decode(token.split(".")[1]))
    except (TypeError, ValueError) as e:
        logger.debug("Access token not decodable: %s", e)
        return None
    if not isinstance(payload, dict):
        return None
    subject_id = None
    for claim in _SUBJECT_CLAIMS:
        subject_id = _as_int(payload.get(claim))
        if subject_id is not None:
            break
    return TokenClaims(subject_id=subject_id, authorization_level=_as_int(payload.get(_ROLE_CLAIM)))


def is_admin(authorization_level: int | None) -> bool:
    """UI gating only: admin and root see admin controls."""
    return authorization_level is not None and authorization_level >= ROLE_ADMIN


def role_name(authorization_level: int | None) -> str:
    return ROLE_NAMES.get(authorization_level, "user")
