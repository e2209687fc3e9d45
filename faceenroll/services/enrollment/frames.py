"""
Frame Processing

One enrollment or verification step for a captured frame:
detect -> quality filter -> add face / verify.
"""

from faceenroll.core.exceptions import QualityRejected
from faceenroll.core.logging import get_logger
from faceenroll.models.domain.enrollment import PersonIdentity
from faceenroll.services.face_api import FaceApiService
from faceenroll.services.quality_filters import QualityFilter

logger = get_logger(__name__)


class FrameProcessor:
    """
    Submits frames for one person identity.

    Frames that fail the local quality filter raise QualityRejected and are
    never sent to add face / verify.
    """

    def __init__(
        self,
        face_api: FaceApiService,
        identity: PersonIdentity,
        quality_filter: QualityFilter,
        verify_min_confidence: float = 0.5
    ):
        """
        Args:
            face_api: FaceApiService instance
            identity: Person the frames belong to
            quality_filter: Filter applied to every detected frame
            verify_min_confidence: Minimum confidence for a verification to count
        """
        self.face_api = face_api
        self.identity = identity
        self.quality_filter = quality_filter
        self.verify_min_confidence = verify_min_confidence

    async def _detect_single_face(self, frame: bytes):
        faces = await self.face_api.detect(frame)
        report = self.quality_filter.evaluate(faces)
        if not report.passed:
            raise QualityRejected(report.reason)
        return faces[0]

    async def enroll_frame(self, frame: bytes) -> bool:
        """
        Add a frame to the person.

        Returns:
            True if the service stored the face
        """
        face = await self._detect_single_face(frame)
        outcome = await self.face_api.add_face(
            self.identity.group_id,
            self.identity.person_id,
            frame,
            face.rectangle,
        )
        if not outcome.accepted:
            logger.info(f"[Frames] Enrollment frame rejected by service: {outcome.reason}")
        return outcome.accepted

    async def verify_frame(self, frame: bytes) -> bool:
        """
        Verify a frame against the person.

        Returns:
            True if the face is identical with enough confidence
        """
        face = await self._detect_single_face(frame)
        result = await self.face_api.verify_face(
            self.identity.group_id,
            self.identity.person_id,
            face.face_id,
        )
        logger.info(f"[Frames] Verify result: identical={result.is_identical} confidence={result.confidence:.2f}")
        return result.passes(self.verify_min_confidence)
