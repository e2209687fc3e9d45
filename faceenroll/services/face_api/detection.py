"""
Detection Repository - detect faces with quality attributes and verify them
against an enrolled person.
"""

from typing import List

from faceenroll.core.logging import get_logger
from faceenroll.models.domain.enrollment import VerifyResult
from faceenroll.models.domain.face import DetectedFace
from .base import FaceApiBase
from .endpoints import DETECT_ENDPOINT, FACE_ATTRIBUTES, VERIFY_ENDPOINT

logger = get_logger(__name__)


class DetectionRepository:
    """Stateless detect / verify calls."""

    def __init__(
        self,
        base: FaceApiBase,
        recognition_model: str = "recognition_03",
        detection_model: str = "detection_01"
    ):
        self._base = base
        self.recognition_model = recognition_model
        self.detection_model = detection_model

    async def detect(self, frame: bytes) -> List[DetectedFace]:
        """
        Detect faces in a frame, returning face ids and quality attributes.

        Raises:
            ServiceError: on non-200 response
        """
        response = await self._base.request(
            "POST", DETECT_ENDPOINT, operation="detect",
            params={
                "returnFaceId": "true",
                "returnFaceAttributes": FACE_ATTRIBUTES,
                "recognitionModel": self.recognition_model,
                "detectionModel": self.detection_model,
            },
            content=frame,
        )
        if response.status_code != 200:
            raise self._base.error_for(response, "detect")

        faces = self._base.parse_json(
            response, "detect", lambda body: [DetectedFace.from_service(item) for item in body]
        )
        logger.debug(f"[Detection] {len(faces)} face(s) detected")
        return faces

    async def verify_face(self, group_id: str, person_id: str, face_id: str) -> VerifyResult:
        """
        Verify a detected face against a person in the group.

        Raises:
            ServiceError: on non-200 response
        """
        response = await self._base.request(
            "POST", VERIFY_ENDPOINT, operation="verify",
            json={
                "faceId": face_id,
                "personId": person_id,
                "largePersonGroupId": group_id,
            },
        )
        if response.status_code != 200:
            raise self._base.error_for(response, "verify")

        result = self._base.parse_json(response, "verify", VerifyResult.model_validate)
        logger.debug(f"[Detection] verify {person_id}: identical={result.is_identical} confidence={result.confidence:.2f}")
        return result

    async def verify(self, group_id: str, person_id: str, frame: bytes) -> VerifyResult:
        """
        Detect the face in a frame and verify it against the person.
        A frame without exactly one face is not identical.
        """
        faces = await self.detect(frame)
        if len(faces) != 1 or not faces[0].face_id:
            logger.debug(f"[Detection] verify skipped: {len(faces)} face(s) in frame")
            return VerifyResult(is_identical=False, confidence=0.0)
        return await self.verify_face(group_id, person_id, faces[0].face_id)
