"""
Enrollment domain models.
Represents enrollment identities, per-frame outcomes and session results.
"""

from typing import Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EnrollResult(str, Enum):
    """Terminal result of one enrollment session."""
    SUCCESS = "success"
    SUCCESS_NO_TRAIN = "success_no_train"   # Verified, but training trigger failed
    CANCEL = "cancel"
    TIMEOUT = "timeout"
    ERROR = "error"

    @property
    def succeeded(self) -> bool:
        return self in (EnrollResult.SUCCESS, EnrollResult.SUCCESS_NO_TRAIN)


class EnrollmentState(str, Enum):
    """Orchestrator state machine."""
    IDLE = "idle"
    ENROLLING = "enrolling"
    VERIFYING = "verifying"
    TRAINING = "training"
    SUCCEEDED = "succeeded"
    SUCCEEDED_NO_TRAIN = "succeeded_no_train"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self not in (
            EnrollmentState.IDLE,
            EnrollmentState.ENROLLING,
            EnrollmentState.VERIFYING,
            EnrollmentState.TRAINING,
        )


TERMINAL_STATES = {
    EnrollResult.SUCCESS: EnrollmentState.SUCCEEDED,
    EnrollResult.SUCCESS_NO_TRAIN: EnrollmentState.SUCCEEDED_NO_TRAIN,
    EnrollResult.CANCEL: EnrollmentState.CANCELLED,
    EnrollResult.TIMEOUT: EnrollmentState.TIMED_OUT,
    EnrollResult.ERROR: EnrollmentState.FAILED,
}


class EnrollSettings(BaseModel):
    """Settings consumed by one enrollment session."""

    person_group_id: str = Field(..., min_length=1)
    frames_target: int = Field(2, ge=1, description="Frames to enroll before verifying")
    timeout_seconds: float = Field(20.0, gt=0, description="Overall session deadline")
    settle_delay_ms: int = Field(500, ge=0, description="Wait before the first capture")
    capture_retry_delay_ms: int = Field(0, ge=0, description="Pause after a non-advancing iteration")
    verify_min_confidence: float = Field(0.5, ge=0, le=1)


class PersonIdentity(BaseModel):
    """Person created in a large person group by the face service."""

    model_config = ConfigDict(frozen=True)

    group_id: str
    person_id: str


class AddFaceOutcome(BaseModel):
    """Result of submitting one frame to a person."""

    accepted: bool
    persisted_face_id: Optional[str] = None
    reason: Optional[str] = None


class VerifyResult(BaseModel):
    """Face-to-person verification result."""

    model_config = ConfigDict(populate_by_name=True)

    is_identical: bool = Field(False, alias="isIdentical")
    confidence: float = Field(0.0, ge=0, le=1)

    def passes(self, min_confidence: float) -> bool:
        return self.is_identical and self.confidence >= min_confidence


class EnrollmentRecord(BaseModel):
    """
    Username to person mapping held for the current app session.

    `person_id` is the established enrollment; `new_person_id` is set while
    a re-enrollment is pending and replaces `person_id` once it succeeds.
    """

    username: str
    group_id: str
    person_id: Optional[str] = None
    new_person_id: Optional[str] = None

    @property
    def active_person_id(self) -> Optional[str]:
        """Newer person id when re-enrolling, otherwise the only one."""
        return self.new_person_id or self.person_id

    @property
    def is_reenrollment(self) -> bool:
        return bool(self.person_id and self.new_person_id)

    def identity(self) -> Optional[PersonIdentity]:
        if not self.active_person_id:
            return None
        return PersonIdentity(group_id=self.group_id, person_id=self.active_person_id)
