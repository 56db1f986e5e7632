"""
SOJ client configuration. Header names, storage keys and routes are part of the wire contract
with the SOJ backend; URLs and timeouts come from env.
"""
import os

# Backend base URL (every API path below is relative to it)
API_BASE_URL = os.environ.get("SOJ_API_BASE_URL", "http://127.0.0.1:8080").rstrip("/")

# Per-request transport timeout (seconds)
REQUEST_TIMEOUT = float(os.environ.get("SOJ_REQUEST_TIMEOUT", "15"))

# Upper bound on a single refresh call; every queued request waits on it
REFRESH_TIMEOUT = float(os.environ.get("SOJ_REFRESH_TIMEOUT", "10"))

# Credential headers. The refresh call carries only the refresh token header.
ACCESS_TOKEN_HEADER = "SOJ-Access-Token"
REFRESH_TOKEN_HEADER = "SOJ-Refresh-Token"

# Application envelope codes
SUCCESS_CODE = 200
UNAUTHORIZED_CODE = 401

# API paths
LOGIN_API_PATH = "/api/v1/user/login"
LOGOUT_API_PATH = "/api/v1/user/logout"
REFRESH_PATH = "/api/v1/user/refresh_token"
USER_INFO_PATH = "/api/v1/user/{user_id}"

# Browser routes
LOGIN_ROUTE = "/login"
REDIRECT_PARAM = "redirect"

# Persisted state layout
ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
USER_ID_KEY = "user_id"
USER_ROLE_KEY = "user_role"
DRAFT_KEY_PREFIX = "code_draft_"

# Optional JSON file for durable credentials; empty = in-memory only
STORAGE_PATH = os.environ.get("SOJ_STORAGE_PATH", "").strip() or None

# Second terminate() within this window does not navigate again
TERMINATE_DEBOUNCE_SECONDS = float(os.environ.get("SOJ_TERMINATE_DEBOUNCE_SECONDS", "1.0"))
