from typing import Optional, Dict, Any


class SocialPulseError(Exception):
    """Base exception for dashboard ingestion and analytics errors."""

    def __init__(
        self, message: str, code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": str(self), "details": self.details}


class InvalidFormatError(SocialPulseError):
    """Raised when an upload is not a parseable sequence of rows."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="INVALID_FORMAT", details=details)


class NotFoundError(SocialPulseError):
    """Raised when a dashboard or post is missing or owned by someone else."""

    def __init__(
        self, resource_type: str, resource_id: str, details: Optional[Dict[str, Any]] = None
    ):
        message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(message, code="NOT_FOUND", details=details)
        self.resource_type = resource_type
        self.resource_id = resource_id


class ValidationError(SocialPulseError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="VALIDATION_ERROR", details=details)
