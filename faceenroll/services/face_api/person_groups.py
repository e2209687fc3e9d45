"""
Person Groups Repository - large person group validation, training and cleanup.
"""

from typing import Optional

from faceenroll.core.logging import get_logger
from .base import FaceApiBase
from .endpoints import person_group_endpoint, train_endpoint, training_status_endpoint

logger = get_logger(__name__)


class PersonGroupsRepository:
    """Operations on a whole large person group."""

    def __init__(self, base: FaceApiBase, recognition_model: str = "recognition_03"):
        self._base = base
        self.recognition_model = recognition_model

    async def ensure_person_group(self, group_id: str) -> bool:
        """
        Validate that the group exists, creating it when the service reports 404.

        Returns:
            True if the group exists afterwards
        """
        response = await self._base.request(
            "GET", person_group_endpoint(group_id), operation="get_person_group",
        )
        if response.status_code == 200:
            logger.debug(f"[PersonGroups] {group_id} exists")
            return True

        if response.status_code != 404:
            self._base.log_failure(response, "get_person_group")
            return False

        logger.info(f"[PersonGroups] {group_id} not found, creating with {self.recognition_model}")
        response = await self._base.request(
            "PUT", person_group_endpoint(group_id), operation="create_person_group",
            json={"name": group_id, "recognitionModel": self.recognition_model},
        )
        if response.status_code == 200:
            return True

        self._base.log_failure(response, "create_person_group")
        return False

    async def delete_person_group(self, group_id: str) -> bool:
        """Delete the group with every person in it. Used to reset test data."""
        response = await self._base.request(
            "DELETE", person_group_endpoint(group_id), operation="delete_person_group",
        )
        if response.status_code == 200:
            logger.info(f"[PersonGroups] Deleted {group_id}")
            return True

        self._base.log_failure(response, "delete_person_group")
        return False

    async def train(self, group_id: str) -> bool:
        """
        Trigger asynchronous training of the group.

        Returns:
            Whether the service accepted the training request
        """
        response = await self._base.request(
            "POST", train_endpoint(group_id), operation="train",
        )
        if response.status_code in (200, 202):
            logger.info(f"[PersonGroups] Training triggered for {group_id}")
            return True

        self._base.log_failure(response, "train")
        return False

    async def get_training_status(self, group_id: str) -> Optional[str]:
        """
        Get training status ('notstarted', 'running', 'succeeded', 'failed').

        Raises:
            ServiceError: on non-200 response
        """
        response = await self._base.request(
            "GET", training_status_endpoint(group_id), operation="get_training_status",
        )
        if response.status_code != 200:
            raise self._base.error_for(response, "get_training_status")
        return self._base.parse_json(
            response, "get_training_status", lambda body: body.get("status")
        )
