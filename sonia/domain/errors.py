"""
Error definitions for the wellness service.

Rules:
- No silent failure: invalid input and broken documents raise WellnessError
- Every error carries a stable code + human message + context
- Routes map codes to HTTP status via ERROR_STATUS
"""

from typing import Any


class WellnessError(Exception):
    """
    Domain error raised by the store and the services.

    Usage:
        raise WellnessError(ErrorCodes.USER_EXISTS, "User already exists", email=email)
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        if ctx_str:
            return f"[{self.code}] {self.message} ({ctx_str})"
        return f"[{self.code}] {self.message}"

    @property
    def status_code(self) -> int:
        return ERROR_STATUS.get(self.code, 500)

    def to_dict(self) -> dict[str, Any]:
        """For logs and JSON responses."""
        return {
            "code": self.code,
            "message": self.message,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """Error code constants. Add the HTTP status to ERROR_STATUS with every new code."""

    # === Auth ===
    MISSING_FIELDS = "MISSING_FIELDS"
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    USER_EXISTS = "USER_EXISTS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    WRONG_PASSWORD = "WRONG_PASSWORD"
    NO_TOKEN = "NO_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    JWT_SECRET_MISSING = "JWT_SECRET_MISSING"

    # === Store ===
    STORE_CORRUPT = "STORE_CORRUPT"
    STORE_LOCK_TIMEOUT = "STORE_LOCK_TIMEOUT"

    # === Chat ===
    EMPTY_MESSAGE = "EMPTY_MESSAGE"
    INVALID_ROLE = "INVALID_ROLE"
    EMPTY_AUDIO = "EMPTY_AUDIO"
    INVALID_AUDIO = "INVALID_AUDIO"
    AUDIO_TOO_LARGE = "AUDIO_TOO_LARGE"

    # === Voice call ===
    INVALID_EVENT = "INVALID_EVENT"
    UNKNOWN_EVENT = "UNKNOWN_EVENT"

    # === Journal ===
    EMPTY_ENTRY = "EMPTY_ENTRY"
    ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"

    # === Context ===
    INVALID_CONTEXT = "INVALID_CONTEXT"

    # === Wellness ===
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    INVALID_SCOPE = "INVALID_SCOPE"
    REPORT_FAILED = "REPORT_FAILED"


ERROR_STATUS: dict[str, int] = {
    ErrorCodes.MISSING_FIELDS: 400,
    ErrorCodes.MISSING_CREDENTIALS: 400,
    ErrorCodes.USER_EXISTS: 400,
    ErrorCodes.USER_NOT_FOUND: 400,
    ErrorCodes.WRONG_PASSWORD: 400,
    ErrorCodes.NO_TOKEN: 401,
    ErrorCodes.INVALID_TOKEN: 401,
    ErrorCodes.JWT_SECRET_MISSING: 500,
    ErrorCodes.STORE_CORRUPT: 500,
    ErrorCodes.STORE_LOCK_TIMEOUT: 503,
    ErrorCodes.EMPTY_MESSAGE: 400,
    ErrorCodes.INVALID_ROLE: 400,
    ErrorCodes.EMPTY_AUDIO: 400,
    ErrorCodes.INVALID_AUDIO: 400,
    ErrorCodes.AUDIO_TOO_LARGE: 413,
    ErrorCodes.INVALID_EVENT: 400,
    ErrorCodes.UNKNOWN_EVENT: 400,
    ErrorCodes.EMPTY_ENTRY: 400,
    ErrorCodes.ENTRY_NOT_FOUND: 404,
    ErrorCodes.INVALID_CONTEXT: 400,
    ErrorCodes.INSUFFICIENT_DATA: 400,
    ErrorCodes.INVALID_SCOPE: 400,
    ErrorCodes.REPORT_FAILED: 502,
}
