"""
EnrollmentService - Facade for user enrollment.
Coordinates person group validation, person creation, the enrollment
session and cleanup of superseded or failed identities.

Delegates to specialized modules in services/enrollment/:
- frames.py - Per-frame processing
- orchestrator.py - Enrollment session
"""

from typing import Optional, Tuple

from faceenroll.core.exceptions import ServiceError
from faceenroll.core.logging import get_logger
from faceenroll.models.domain.enrollment import (
    EnrollmentRecord,
    EnrollResult,
    EnrollSettings,
)
from faceenroll.services.enrollment import (
    EnrollmentOrchestrator,
    ProgressObserver,
    TakePicture,
)
from faceenroll.services.face_api import FaceApiService
from faceenroll.services.quality_filters import QualityFilter

logger = get_logger(__name__)


class EnrollmentService:
    """
    Facade for enrollment operations.

    Identifiers live only in the EnrollmentRecord handed back to the caller;
    storing them is the caller's concern.
    """

    def __init__(
        self,
        face_api: FaceApiService,
        settings: EnrollSettings,
        quality_filter: Optional[QualityFilter] = None
    ):
        self.face_api = face_api
        self.settings = settings
        self.quality_filter = quality_filter or QualityFilter()

    @property
    def group_id(self) -> str:
        return self.settings.person_group_id

    # ==================== Setup ====================

    async def validate_person_group(self) -> bool:
        """Make sure the configured person group exists."""
        validated = await self.face_api.ensure_person_group(self.group_id)
        if not validated:
            logger.error(f"[EnrollmentService] Person group {self.group_id} could not be validated")
        return validated

    async def begin_enrollment(
        self,
        username: str,
        existing_person_id: Optional[str] = None
    ) -> EnrollmentRecord:
        """
        Create the person that frames will be enrolled into.

        With `existing_person_id` this is a re-enrollment: the new person is
        kept apart until the enrollment succeeds.

        Raises:
            ServiceError: the person could not be created
        """
        person_id = await self.face_api.create_person(self.group_id)
        record = EnrollmentRecord(username=username, group_id=self.group_id)
        if existing_person_id:
            record.person_id = existing_person_id
            record.new_person_id = person_id
            logger.info(f"[EnrollmentService] Re-enrolling {username}: new pid {person_id}")
        else:
            record.person_id = person_id
            logger.info(f"[EnrollmentService] Enrolling {username}: pid {person_id}")
        return record

    def create_orchestrator(
        self,
        record: EnrollmentRecord,
        on_progress: Optional[ProgressObserver] = None
    ) -> EnrollmentOrchestrator:
        identity = record.identity()
        if identity is None:
            raise ValueError(f"No person id to enroll for {record.username}")
        return EnrollmentOrchestrator(
            self.face_api,
            identity,
            self.settings,
            quality_filter=self.quality_filter,
            on_progress=on_progress,
        )

    # ==================== Finalization ====================

    async def complete_enrollment(
        self,
        record: EnrollmentRecord,
        result: EnrollResult
    ) -> EnrollmentRecord:
        """
        Update the record after a session.

        Success of a re-enrollment deletes the old person and promotes the
        new one. Failure drops the identity the session already deleted.
        """
        if not result.succeeded:
            if record.new_person_id:
                record.new_person_id = None
            else:
                record.person_id = None
            return record

        if record.is_reenrollment:
            try:
                await self.delete_old_enrollment(record)
            except ServiceError as e:
                logger.warning(f"[EnrollmentService] Old enrollment not deleted: {e.message}")
        return record

    async def delete_old_enrollment(self, record: EnrollmentRecord) -> bool:
        """
        Delete the superseded person of a re-enrollment and promote the new one.

        Returns:
            True if the old person was deleted, False if nothing to delete
            or it was already absent

        Raises:
            ServiceError: the delete failed
        """
        if not record.is_reenrollment:
            logger.info("[EnrollmentService] pid is empty")
            return False

        old_person_id = record.person_id
        deleted = await self.face_api.delete_person(self.group_id, old_person_id)
        if deleted:
            record.person_id = record.new_person_id
            record.new_person_id = None
            logger.info(f"[EnrollmentService] Replaced {old_person_id} with {record.person_id}")
        return deleted

    async def delete_enrollment(self, record: EnrollmentRecord) -> bool:
        """
        Delete the active person of the record (the newer one when re-enrolling).

        Returns:
            True if deleted, False if there is no id or it was already absent

        Raises:
            ServiceError: the delete failed
        """
        identity = record.identity()
        if identity is None:
            logger.info("[EnrollmentService] pid is empty")
            return False

        deleted = await self.face_api.delete_person(identity.group_id, identity.person_id)
        if record.new_person_id:
            record.new_person_id = None
        else:
            record.person_id = None
        return deleted

    # ==================== Full flow ====================

    async def enroll(
        self,
        username: str,
        take_picture: TakePicture,
        existing_person_id: Optional[str] = None,
        on_progress: Optional[ProgressObserver] = None
    ) -> Tuple[EnrollResult, EnrollmentRecord]:
        """
        Begin, run and complete one enrollment.

        Raises:
            ServiceError: the person could not be created
        """
        record = await self.begin_enrollment(username, existing_person_id)
        orchestrator = self.create_orchestrator(record, on_progress=on_progress)
        result = await orchestrator.run(take_picture)
        record = await self.complete_enrollment(record, result)
        logger.info(f"[EnrollmentService] {username} enrollment finished: {result.value}")
        return result, record
