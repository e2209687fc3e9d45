"""
Enrollment Package - face enrollment workflow.

Modules:
- frames.py - One detect/filter/submit step per captured frame
- orchestrator.py - Session state machine, deadline, compensation, training
"""

from .frames import FrameProcessor
from .orchestrator import (
    EnrollmentOrchestrator,
    EnrollmentSession,
    TakePicture,
    ProgressObserver,
    CompletionCallback,
)

__all__ = [
    "FrameProcessor",
    "EnrollmentOrchestrator",
    "EnrollmentSession",
    "TakePicture",
    "ProgressObserver",
    "CompletionCallback",
]
