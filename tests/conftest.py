"""Pytest configuration and fixtures for faceenroll tests."""

import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from faceenroll.core.config import Settings
from faceenroll.models.domain.enrollment import (
    AddFaceOutcome,
    EnrollSettings,
    PersonIdentity,
    VerifyResult,
)
from faceenroll.models.domain.face import DetectedFace, FaceRectangle
from faceenroll.services.face_api import FaceApiService

GROUP_ID = "test-group"
PERSON_ID = "11111111-2222-3333-4444-555555555555"


@pytest.fixture
def test_settings():
    """Settings without touching the environment."""
    return Settings(
        FACEAPI_ENDPOINT="https://faces.example.com/",
        FACEAPI_KEY="test-key",
        PERSONGROUP_RGB=GROUP_ID,
        USER_AGENT="faceenroll-tests/1.0",
    )


@pytest.fixture
def enroll_settings():
    """Fast session settings: no settling delay, short deadline."""
    return EnrollSettings(
        person_group_id=GROUP_ID,
        frames_target=2,
        timeout_seconds=5.0,
        settle_delay_ms=0,
        capture_retry_delay_ms=0,
    )


@pytest.fixture
def identity():
    return PersonIdentity(group_id=GROUP_ID, person_id=PERSON_ID)


def make_face(face_id: str = "face-1", **attributes) -> DetectedFace:
    """A clean frontal face unless attributes override it."""
    return DetectedFace.from_service({
        "faceId": face_id,
        "faceRectangle": {"top": 10, "left": 20, "width": 100, "height": 120},
        "faceAttributes": attributes,
    })


def json_response(status_code: int, body) -> httpx.Response:
    return httpx.Response(status_code, content=json.dumps(body).encode(),
                          headers={"Content-Type": "application/json"})


def error_response(status_code: int, code: str, message: str) -> httpx.Response:
    return json_response(status_code, {"error": {"code": code, "message": message}})


def detect_payload(*face_ids):
    return [
        {
            "faceId": face_id,
            "faceRectangle": {"top": 5, "left": 7, "width": 90, "height": 110},
            "faceAttributes": {
                "headPose": {"roll": 1.0, "yaw": -2.0, "pitch": 0.5},
                "glasses": "NoGlasses",
                "blur": {"blurLevel": "low", "value": 0.05},
                "exposure": {"exposureLevel": "goodExposure", "value": 0.6},
                "noise": {"noiseLevel": "low", "value": 0.01},
            },
        }
        for face_id in face_ids
    ]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


@pytest.fixture
def make_face_api(test_settings):
    """Build a FaceApiService whose HTTP calls go to a handler."""
    def factory(handler: Callable[[httpx.Request], httpx.Response]):
        transport = RecordingTransport(handler)
        return FaceApiService.from_settings(test_settings, transport=transport), transport
    return factory


class FakeFaceApi:
    """
    In-memory stand-in for FaceApiService used by workflow tests.

    `detections` is consumed one entry per detect call; when exhausted every
    frame shows one clean face. Verify and add-face answers work the same way.
    """

    def __init__(
        self,
        detections: Optional[List[List[DetectedFace]]] = None,
        add_face_results: Optional[List[bool]] = None,
        verify_results: Optional[List[bool]] = None,
        train_result: bool = True,
        delete_error: Optional[Exception] = None,
    ):
        self.detections = list(detections or [])
        self.add_face_results = list(add_face_results or [])
        self.verify_results = list(verify_results or [])
        self.train_result = train_result
        self.delete_error = delete_error
        self.calls: Dict[str, int] = {}
        self.created: List[str] = []
        self.deleted: List[str] = []

    def _count(self, name: str):
        self.calls[name] = self.calls.get(name, 0) + 1

    async def detect(self, frame: bytes) -> List[DetectedFace]:
        self._count("detect")
        if self.detections:
            return self.detections.pop(0)
        return [make_face()]

    async def add_face(self, group_id, person_id, frame, target_face: FaceRectangle = None):
        self._count("add_face")
        accepted = self.add_face_results.pop(0) if self.add_face_results else True
        return AddFaceOutcome(accepted=accepted, persisted_face_id="pf" if accepted else None)

    async def verify_face(self, group_id, person_id, face_id) -> VerifyResult:
        self._count("verify_face")
        identical = self.verify_results.pop(0) if self.verify_results else True
        return VerifyResult(is_identical=identical, confidence=0.9 if identical else 0.1)

    async def train(self, group_id) -> bool:
        self._count("train")
        return self.train_result

    async def delete_person(self, group_id, person_id) -> bool:
        self._count("delete_person")
        if self.delete_error is not None:
            raise self.delete_error
        self.deleted.append(person_id)
        return True

    async def create_person(self, group_id, name="person-name") -> str:
        self._count("create_person")
        person_id = f"person-{len(self.created) + 1}"
        self.created.append(person_id)
        return person_id

    async def ensure_person_group(self, group_id) -> bool:
        self._count("ensure_person_group")
        return True


class FakeCamera:
    """Capture provider returning queued frames, then a default frame."""

    def __init__(self, frames: Optional[list] = None, default: Optional[bytes] = b"frame"):
        self.frames = list(frames or [])
        self.default = default
        self.captures = 0

    async def take_picture(self) -> Optional[bytes]:
        self.captures += 1
        if self.frames:
            return self.frames.pop(0)
        return self.default
