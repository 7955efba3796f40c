# src/uso_auth/app/core/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class GatewayError(Exception):
    """
    Base for every failure a handler can report to the caller.

    status_code/code are rendered as `{"error": code}` (plus `detail` when
    the subclass carries one) by the exception handler in main.py.
    """

    status_code: int = 500
    code: str = "server_error"

    def __init__(self, code: Optional[str] = None, detail: Any = None):
        if code is not None:
            self.code = code
        self.detail = detail
        super().__init__(self.code)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code}
        if self.detail is not None:
            body["detail"] = self.detail
        return body


class MissingInput(GatewayError):
    status_code = 400
    code = "bad_request"

    @classmethod
    def field(cls, name: str) -> "MissingInput":
        return cls(code=f"missing {name}")


class UpstreamRejected(GatewayError):
    """Kakao refused the access token; detail is its raw error body."""

    status_code = 401
    code = "kakao_invalid"

    def __init__(self, detail: Any = None):
        super().__init__(detail=detail)


class NoCredential(GatewayError):
    status_code = 401
    code = "no_auth"


class InvalidCredential(GatewayError):
    # one code for every verification failure; the reason stays server-side
    status_code = 401
    code = "invalid_token"


class StoreError(GatewayError):
    status_code = 500
    code = "store_error"

    def __init__(self, detail: Any = None):
        super().__init__(detail=detail)


class UnexpectedError(GatewayError):
    status_code = 500
    code = "server_error"


class ConfigError(RuntimeError):
    """Required process configuration is missing or malformed."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__("ENV missing: " + " | ".join(self.missing))
