"""
Dev server configuration. Mirrors the SOJ backend's wire contract; no secrets in this file.
"""
import os

# Issuer claim for access tokens
ISSUER = os.environ.get("SOJ_DEV_ISSUER", "http://127.0.0.1:8080").rstrip("/")

# SQLite for development; tests use in-memory
DATABASE_URL = os.environ.get("SOJ_DEV_DATABASE_URL", "sqlite:///./soj_dev_server.db")

# Access token lifetime (seconds). Short so refresh is exercised during development.
ACCESS_TOKEN_EXPIRES = int(os.environ.get("SOJ_DEV_ACCESS_TOKEN_EXPIRES", "60"))

# Refresh token lifetime (seconds)
REFRESH_TOKEN_EXPIRES = int(os.environ.get("SOJ_DEV_REFRESH_TOKEN_EXPIRES", "604800"))

# RSA signing key PEM. Empty = generate a key in memory on startup (not persisted).
SIGNING_KEY_PATH = os.environ.get("SOJ_DEV_SIGNING_KEY_PATH", ".soj_dev_signing_key.pem").strip() or None

# Credential headers (same names the client sends)
ACCESS_TOKEN_HEADER = "SOJ-Access-Token"
REFRESH_TOKEN_HEADER = "SOJ-Refresh-Token"

# Envelope codes
CODE_OK = 200
CODE_BAD_REQUEST = 400
CODE_UNAUTHORIZED = 401
CODE_NOT_FOUND = 404

# Role levels
ROLE_USER = 1
ROLE_ADMIN = 2
