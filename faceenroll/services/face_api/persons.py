"""
Persons Repository - person lifecycle and persisted faces in a large person group.
"""

from typing import Optional

from faceenroll.core.logging import get_logger
from faceenroll.models.domain.enrollment import AddFaceOutcome
from faceenroll.models.domain.face import FaceRectangle
from .base import FaceApiBase, parse_service_error
from .endpoints import (
    PERSON_NOT_FOUND,
    add_face_endpoint,
    person_endpoint,
    persons_endpoint,
)

logger = get_logger(__name__)


class PersonsRepository:
    """Create/delete persons and add faces to them."""

    def __init__(self, base: FaceApiBase, detection_model: str = "detection_01"):
        self._base = base
        self.detection_model = detection_model

    async def create_person(self, group_id: str, name: str = "person-name") -> str:
        """
        Create a person in the group.

        Returns:
            personId assigned by the service

        Raises:
            ServiceError: on any non-200 response
        """
        response = await self._base.request(
            "POST", persons_endpoint(group_id), operation="create_person",
            json={"name": name},
        )
        if response.status_code != 200:
            raise self._base.error_for(response, "create_person")

        person_id = self._base.parse_json(response, "create_person", lambda body: body["personId"])
        logger.info(f"[Persons] Created person {person_id} in {group_id}")
        return person_id

    async def delete_person(self, group_id: str, person_id: str) -> bool:
        """
        Delete a person and all its persisted faces.

        Returns:
            True if deleted, False if the service reports the person absent

        Raises:
            ServiceError: on any other response
        """
        response = await self._base.request(
            "DELETE", person_endpoint(group_id, person_id), operation="delete_person",
        )
        if response.status_code == 200:
            logger.info(f"[Persons] Deleted person {person_id}")
            return True

        if response.status_code == 404:
            _, message = parse_service_error(response)
            if PERSON_NOT_FOUND in message:
                logger.info(f"[Persons] Person {person_id} already absent")
                return False

        raise self._base.error_for(response, "delete_person")

    async def add_face(
        self,
        group_id: str,
        person_id: str,
        frame: bytes,
        target_face: Optional[FaceRectangle] = None
    ) -> AddFaceOutcome:
        """
        Submit one frame as a persisted face of the person.

        Args:
            group_id: Large person group ID
            person_id: Person to add the face to
            frame: Encoded image bytes
            target_face: Face rectangle from detect, when known

        Returns:
            AddFaceOutcome - accepted with persistedFaceId, or rejected with
            the service message (HTTP 400: no face, bad image, several faces)

        Raises:
            ServiceError: on any other non-200 response
        """
        params = {"detectionModel": self.detection_model}
        if target_face is not None:
            params["targetFace"] = target_face.to_target_face()

        response = await self._base.request(
            "POST", add_face_endpoint(group_id, person_id), operation="add_face",
            params=params, content=frame,
        )
        if response.status_code == 200:
            persisted_face_id = self._base.parse_json(
                response, "add_face", lambda body: body.get("persistedFaceId")
            )
            logger.debug(f"[Persons] Added face {persisted_face_id} to {person_id}")
            return AddFaceOutcome(accepted=True, persisted_face_id=persisted_face_id)

        if response.status_code == 400:
            service_code, message = parse_service_error(response)
            logger.info(f"[Persons] Face rejected for {person_id}: {service_code} {message}")
            return AddFaceOutcome(accepted=False, reason=message or service_code)

        raise self._base.error_for(response, "add_face")
