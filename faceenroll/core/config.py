"""
Application configuration via Pydantic Settings.
Loads from environment variables with validation and defaults.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from faceenroll.models.domain.enrollment import EnrollSettings
from faceenroll.models.domain.face import QualityThresholds

VERSION = "1.0.0"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # === Logging ===
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # === Face API ===
    faceapi_endpoint: str = Field(..., alias="FACEAPI_ENDPOINT")
    faceapi_key: str = Field(..., alias="FACEAPI_KEY")
    person_group_id: str = Field(default="reference-enroll-rgb", alias="PERSONGROUP_RGB")
    recognition_model: str = Field(default="recognition_03", alias="RECOGNITION_MODEL_RGB")
    detection_model: str = Field(default="detection_01", alias="DETECTION_MODEL")
    request_timeout_seconds: float = Field(default=30.0, gt=0, alias="REQUEST_TIMEOUT_SECONDS")
    user_agent: str = Field(default=f"ReferenceEnrollmentApp/{VERSION}", alias="USER_AGENT")

    # === Enrollment ===
    enroll_frames_target: int = Field(default=2, ge=1, alias="ENROLL_RGB_FRAMES_TOENROLL")
    enroll_timeout_seconds: float = Field(default=20.0, gt=0, alias="ENROLL_TIMEOUT_SECONDS")
    enroll_settle_delay_ms: int = Field(default=500, ge=0, alias="ENROLL_SETTLE_DELAY_MS")
    capture_retry_delay_ms: int = Field(default=0, ge=0, alias="CAPTURE_RETRY_DELAY_MS")
    verify_min_confidence: float = Field(default=0.5, ge=0, le=1, alias="VERIFY_MIN_CONFIDENCE")

    # === Quality filters ===
    quality_max_roll: float = Field(default=20.0, ge=0, alias="QUALITY_MAX_ROLL")
    quality_max_yaw: float = Field(default=20.0, ge=0, alias="QUALITY_MAX_YAW")
    quality_max_pitch: float = Field(default=20.0, ge=0, alias="QUALITY_MAX_PITCH")
    quality_max_blur: float = Field(default=0.25, ge=0, le=1, alias="QUALITY_MAX_BLUR")
    quality_min_exposure: float = Field(default=0.25, ge=0, le=1, alias="QUALITY_MIN_EXPOSURE")
    quality_max_exposure: float = Field(default=0.75, ge=0, le=1, alias="QUALITY_MAX_EXPOSURE")
    quality_max_noise: float = Field(default=0.3, ge=0, le=1, alias="QUALITY_MAX_NOISE")
    quality_allow_occlusion: bool = Field(default=False, alias="QUALITY_ALLOW_OCCLUSION")
    quality_max_accessory_confidence: float = Field(
        default=0.5, ge=0, le=1, alias="QUALITY_MAX_ACCESSORY_CONFIDENCE"
    )
    quality_rejected_glasses: str = Field(
        default="sunglasses,swimmingGoggles", alias="QUALITY_REJECTED_GLASSES"
    )
    quality_rejected_accessories: str = Field(
        default="mask,headwear", alias="QUALITY_REJECTED_ACCESSORIES"
    )

    @property
    def face_api_base_url(self) -> str:
        """Service root with the face API version prefix."""
        return self.faceapi_endpoint.rstrip("/") + "/face/v1.0/"

    @staticmethod
    def _split(value: str) -> List[str]:
        return [item.strip() for item in value.split(",") if item.strip()]

    def enroll_settings(self) -> EnrollSettings:
        """Typed view of the fields the enrollment orchestrator consumes."""
        return EnrollSettings(
            person_group_id=self.person_group_id,
            frames_target=self.enroll_frames_target,
            timeout_seconds=self.enroll_timeout_seconds,
            settle_delay_ms=self.enroll_settle_delay_ms,
            capture_retry_delay_ms=self.capture_retry_delay_ms,
            verify_min_confidence=self.verify_min_confidence,
        )

    def quality_thresholds(self) -> QualityThresholds:
        """Typed view of the quality filter thresholds."""
        return QualityThresholds(
            max_roll=self.quality_max_roll,
            max_yaw=self.quality_max_yaw,
            max_pitch=self.quality_max_pitch,
            max_blur=self.quality_max_blur,
            min_exposure=self.quality_min_exposure,
            max_exposure=self.quality_max_exposure,
            max_noise=self.quality_max_noise,
            allow_occlusion=self.quality_allow_occlusion,
            max_accessory_confidence=self.quality_max_accessory_confidence,
            rejected_glasses=self._split(self.quality_rejected_glasses),
            rejected_accessories=self._split(self.quality_rejected_accessories),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
