"""
Response envelope {code, data, message}. HTTP status stays 200; the outcome is in code.
"""
from typing import Any

from soj_dev_server.config import CODE_OK


def ok(data: Any = None, message: str = "success") -> dict:
    return {"code": CODE_OK, "data": data, "message": message}


def fail(code: int, message: str) -> dict:
    return {"code": code, "data": None, "message": message}
