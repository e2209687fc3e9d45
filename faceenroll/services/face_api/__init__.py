"""
Face API Service Package - client for the remote face recognition service.

Usage:
    from faceenroll.services.face_api import FaceApiService

    async with FaceApiService.from_settings(settings) as face_api:
        person_id = await face_api.create_person(group_id)
        outcome = await face_api.add_face(group_id, person_id, frame)
        result = await face_api.verify(group_id, person_id, frame)
        trained = await face_api.train(group_id)

Repositories are also reachable directly:
    face_api.persons, face_api.person_groups, face_api.detection
"""

from typing import List, Optional

import httpx

from faceenroll.core.config import Settings
from faceenroll.core.logging import get_logger
from faceenroll.models.domain.enrollment import AddFaceOutcome, VerifyResult
from faceenroll.models.domain.face import DetectedFace, FaceRectangle
from .base import FaceApiBase, parse_service_error
from .detection import DetectionRepository
from .person_groups import PersonGroupsRepository
from .persons import PersonsRepository

logger = get_logger(__name__)


class FaceApiService:
    """
    Unified facade for all face service operations.

    Provides structured access to repositories:
    - persons: create/delete persons, add faces
    - person_groups: validate, train, delete groups
    - detection: detect faces, verify against a person
    """

    def __init__(
        self,
        base: FaceApiBase,
        recognition_model: str = "recognition_03",
        detection_model: str = "detection_01"
    ):
        self._base = base
        self.persons = PersonsRepository(base, detection_model=detection_model)
        self.person_groups = PersonGroupsRepository(base, recognition_model=recognition_model)
        self.detection = DetectionRepository(
            base,
            recognition_model=recognition_model,
            detection_model=detection_model,
        )
        logger.info("FaceApiService initialized")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "FaceApiService":
        return cls(
            FaceApiBase.from_settings(settings, transport=transport),
            recognition_model=settings.recognition_model,
            detection_model=settings.detection_model,
        )

    # ==================== Persons ====================

    async def create_person(self, group_id: str, name: str = "person-name") -> str:
        return await self.persons.create_person(group_id, name)

    async def delete_person(self, group_id: str, person_id: str) -> bool:
        return await self.persons.delete_person(group_id, person_id)

    async def add_face(
        self,
        group_id: str,
        person_id: str,
        frame: bytes,
        target_face: Optional[FaceRectangle] = None
    ) -> AddFaceOutcome:
        return await self.persons.add_face(group_id, person_id, frame, target_face)

    # ==================== Detection ====================

    async def detect(self, frame: bytes) -> List[DetectedFace]:
        return await self.detection.detect(frame)

    async def verify_face(self, group_id: str, person_id: str, face_id: str) -> VerifyResult:
        return await self.detection.verify_face(group_id, person_id, face_id)

    async def verify(self, group_id: str, person_id: str, frame: bytes) -> VerifyResult:
        return await self.detection.verify(group_id, person_id, frame)

    # ==================== Person Groups ====================

    async def ensure_person_group(self, group_id: str) -> bool:
        return await self.person_groups.ensure_person_group(group_id)

    async def delete_person_group(self, group_id: str) -> bool:
        return await self.person_groups.delete_person_group(group_id)

    async def train(self, group_id: str) -> bool:
        return await self.person_groups.train(group_id)

    async def get_training_status(self, group_id: str) -> Optional[str]:
        return await self.person_groups.get_training_status(group_id)

    # ==================== Lifecycle ====================

    async def aclose(self):
        await self._base.aclose()

    async def __aenter__(self) -> "FaceApiService":
        return self

    async def __aexit__(self, *args):
        await self.aclose()


__all__ = [
    "FaceApiService",
    "FaceApiBase",
    "PersonsRepository",
    "PersonGroupsRepository",
    "DetectionRepository",
    "parse_service_error",
]
