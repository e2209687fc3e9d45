"""
Domain models - core business entities.

These are the source of truth for data structures.
Service clients and the enrollment workflow derive from these.
"""

from faceenroll.models.domain.face import (
    FaceRectangle,
    FaceAttributes,
    DetectedFace,
    QualityThresholds,
    FrameQualityReport,
)
from faceenroll.models.domain.enrollment import (
    EnrollResult,
    EnrollmentState,
    EnrollSettings,
    PersonIdentity,
    AddFaceOutcome,
    VerifyResult,
    EnrollmentRecord,
)

__all__ = [
    'FaceRectangle',
    'FaceAttributes',
    'DetectedFace',
    'QualityThresholds',
    'FrameQualityReport',
    'EnrollResult',
    'EnrollmentState',
    'EnrollSettings',
    'PersonIdentity',
    'AddFaceOutcome',
    'VerifyResult',
    'EnrollmentRecord',
]
