"""
Application exceptions.

Every error carries a stable error code, a user-safe message and an HTTP
status so the API layer can render it without inspecting the type.
"""
from typing import Optional


class SupportWiseError(Exception):
    """Base class for all SupportWise errors."""

    def __init__(self, error_code: str, message: str, status_code: int = 400, details: Optional[str] = None):
        """
        Args:
            error_code (str): Stable machine-readable identifier.
            message (str): User-friendly message.
            status_code (int): HTTP status the API layer should answer with.
            details (str): Optional internal detail, only exposed in development.
        """
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self, include_details: bool = False) -> dict:
        response = {
            "status": "error",
            "error_code": self.error_code,
            "message": self.message,
        }
        if include_details and self.details:
            response["details"] = self.details
        return response


class ValidationError(SupportWiseError):
    """Raised when an inbound message is empty or oversized."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(error_code="VALIDATION_ERROR", message=message, status_code=400, details=details)


class NotFoundError(SupportWiseError):
    """Raised when a business id is unknown to the datastore."""

    def __init__(self, message: str = "Business not found", business_id: Optional[str] = None):
        self.business_id = business_id
        super().__init__(error_code="NOT_FOUND", message=message, status_code=404)


class UpstreamError(SupportWiseError):
    """Raised when the datastore, completion or translation service fails."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(error_code="UPSTREAM_ERROR", message=message, status_code=502, details=details)


class MathEvaluationError(SupportWiseError):
    """Raised when an arithmetic shortcut cannot be evaluated."""

    def __init__(self, message: str = "Could not evaluate expression", details: Optional[str] = None):
        super().__init__(error_code="MATH_EVALUATION_ERROR", message=message, status_code=400, details=details)
