"""
Face domain models.
Mirror the detection payload returned by the face service and the
thresholds the quality filter applies to it.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FaceRectangle(BaseModel):
    """Face location in the captured frame."""

    model_config = ConfigDict(frozen=True)

    top: int = Field(..., ge=0)
    left: int = Field(..., ge=0)
    width: int = Field(..., ge=0)
    height: int = Field(..., ge=0)

    def to_target_face(self) -> str:
        """Format as the `targetFace` query value (left,top,width,height)."""
        return f"{self.left},{self.top},{self.width},{self.height}"


class HeadPose(BaseModel):
    """Head rotation in degrees; all zero means frontal."""

    roll: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0


class Occlusion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    forehead_occluded: bool = Field(False, alias="foreheadOccluded")
    eye_occluded: bool = Field(False, alias="eyeOccluded")
    mouth_occluded: bool = Field(False, alias="mouthOccluded")

    @property
    def occluded(self) -> bool:
        return self.forehead_occluded or self.eye_occluded or self.mouth_occluded


class Accessory(BaseModel):
    type: str
    confidence: float = Field(0.0, ge=0, le=1)


class LevelScore(BaseModel):
    """Blur / exposure / noise score: a coarse level plus a 0-1 value."""

    level: Optional[str] = None
    value: float = Field(0.0, ge=0, le=1)


class FaceAttributes(BaseModel):
    """Attributes requested with returnFaceAttributes on detect."""

    model_config = ConfigDict(populate_by_name=True)

    head_pose: HeadPose = Field(default_factory=HeadPose, alias="headPose")
    occlusion: Occlusion = Field(default_factory=Occlusion)
    glasses: str = "NoGlasses"
    accessories: List[Accessory] = Field(default_factory=list)
    blur: LevelScore = Field(default_factory=LevelScore)
    exposure: LevelScore = Field(default_factory=lambda: LevelScore(value=0.5))
    noise: LevelScore = Field(default_factory=LevelScore)

    @classmethod
    def from_service(cls, payload: dict) -> "FaceAttributes":
        """Build from the service JSON, where level keys are named per score."""
        data = dict(payload)
        for key, level_key in (("blur", "blurLevel"), ("exposure", "exposureLevel"), ("noise", "noiseLevel")):
            score = data.get(key)
            if isinstance(score, dict):
                data[key] = {"level": score.get(level_key), "value": score.get("value", 0.0)}
        return cls.model_validate(data)


class DetectedFace(BaseModel):
    """One face returned by detect."""

    model_config = ConfigDict(populate_by_name=True)

    face_id: Optional[str] = Field(None, alias="faceId")
    rectangle: Optional[FaceRectangle] = Field(None, alias="faceRectangle")
    attributes: FaceAttributes = Field(default_factory=FaceAttributes, alias="faceAttributes")

    @classmethod
    def from_service(cls, payload: dict) -> "DetectedFace":
        return cls(
            face_id=payload.get("faceId"),
            rectangle=payload.get("faceRectangle"),
            attributes=FaceAttributes.from_service(payload.get("faceAttributes") or {}),
        )


class QualityThresholds(BaseModel):
    """Acceptance thresholds for a captured frame."""

    max_roll: float = Field(20.0, ge=0, description="Max absolute roll in degrees")
    max_yaw: float = Field(20.0, ge=0, description="Max absolute yaw in degrees")
    max_pitch: float = Field(20.0, ge=0, description="Max absolute pitch in degrees")

    max_blur: float = Field(0.25, ge=0, le=1, description="Max blur value")
    min_exposure: float = Field(0.25, ge=0, le=1, description="Min exposure value")
    max_exposure: float = Field(0.75, ge=0, le=1, description="Max exposure value")
    max_noise: float = Field(0.3, ge=0, le=1, description="Max noise value")

    allow_occlusion: bool = Field(False, description="Accept occluded forehead/eyes/mouth")
    max_accessory_confidence: float = Field(0.5, ge=0, le=1)
    rejected_glasses: List[str] = Field(default_factory=lambda: ["sunglasses", "swimmingGoggles"])
    rejected_accessories: List[str] = Field(default_factory=lambda: ["mask", "headwear"])


class FrameQualityReport(BaseModel):
    """Outcome of running one frame through the quality filter."""

    passed: bool
    reason: str = "passed"
    face_count: int = Field(0, ge=0)
