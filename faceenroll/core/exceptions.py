"""
Error types raised by the enrollment client.

Everything derives from AppException so callers (the orchestrator loops,
the CLI) can handle the whole family in one place. Frame errors mark a
single unusable iteration; service and enrollment errors carry enough
context to be logged on their own.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception for all faceenroll errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code (e.g. SERVICE_ERROR)
        status_code: HTTP status of the failed call, or the closest match
        details: Extra context (operation, person id, reason...)
    """

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Flatten for structured logs and CLI output."""
        data: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.status_code:
            data["status_code"] = self.status_code
        data.update(self.details)
        return data


# === Remote Service Errors ===

class ServiceError(AppException):
    """Face service returned a non-success response or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        operation: str = None,
        service_code: str = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if service_code:
            details["service_code"] = service_code
        super().__init__(
            message=message,
            code="SERVICE_ERROR",
            status_code=status_code,
            details=details
        )

    @property
    def operation(self) -> Optional[str]:
        return self.details.get("operation")


# === Frame Errors ===

class FrameError(AppException):
    """A captured frame could not be used for this iteration."""

    def __init__(self, message: str, code: str, reason: str = None):
        details = {"reason": reason} if reason else {}
        super().__init__(
            message=message,
            code=code,
            status_code=422,
            details=details
        )


class CaptureEmpty(FrameError):
    def __init__(self):
        super().__init__(message="Capture returned no frame", code="CAPTURE_EMPTY")


class QualityRejected(FrameError):
    def __init__(self, reason: str):
        super().__init__(
            message=f"Frame rejected by quality filter: {reason}",
            code="QUALITY_REJECTED",
            reason=reason
        )

    @property
    def reason(self) -> str:
        return self.details.get("reason", "")


# === Enrollment Errors ===

class EnrollmentError(AppException):
    """Enrollment workflow failed."""

    def __init__(self, message: str, code: str = "ENROLLMENT_ERROR", person_id: str = None):
        details = {"person_id": person_id} if person_id else {}
        super().__init__(
            message=message,
            code=code,
            status_code=500,
            details=details
        )


class CompensationFailure(EnrollmentError):
    """Compensating delete of a partial enrollment did not succeed."""

    def __init__(self, person_id: str, cause: Exception):
        super().__init__(
            message=f"Compensating delete failed: {type(cause).__name__}: {cause}",
            code="COMPENSATION_FAILURE",
            person_id=person_id
        )
        self.cause = cause


class SessionAlreadyRunning(EnrollmentError):
    def __init__(self):
        super().__init__(
            message="Enrollment session already started",
            code="SESSION_ALREADY_RUNNING"
        )


# === Configuration Errors ===

class ConfigurationError(AppException):
    """Settings or remote resources required at startup are not usable."""

    def __init__(self, message: str, setting: str = None):
        details = {"setting": setting} if setting else {}
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=500,
            details=details
        )
