"""
Quality filters for captured frames.
Checks the face attributes returned by detect against acceptance thresholds
before a frame is submitted for enrollment or verification.
"""

from typing import List, Optional, Sequence, Tuple

from faceenroll.models.domain.face import (
    DetectedFace,
    FaceAttributes,
    FrameQualityReport,
    QualityThresholds,
)

# Default quality filter values
DEFAULT_QUALITY_THRESHOLDS = QualityThresholds()


def passes_quality_filters(
    attributes: FaceAttributes,
    thresholds: QualityThresholds = None
) -> Tuple[bool, str]:
    """
    Check if a single face passes quality filters.

    Args:
        attributes: Face attributes from detect
        thresholds: Quality thresholds (uses defaults if None)

    Returns:
        Tuple of (passes: bool, reason: str)
    """
    if thresholds is None:
        thresholds = DEFAULT_QUALITY_THRESHOLDS

    # Occlusion
    occlusion = attributes.occlusion
    if not thresholds.allow_occlusion and occlusion.occluded:
        parts = [
            name for name, flag in (
                ("forehead", occlusion.forehead_occluded),
                ("eye", occlusion.eye_occluded),
                ("mouth", occlusion.mouth_occluded),
            ) if flag
        ]
        return False, f"occluded: {','.join(parts)}"

    # Glasses
    rejected_glasses = {g.lower() for g in thresholds.rejected_glasses}
    if attributes.glasses.lower() in rejected_glasses:
        return False, f"glasses {attributes.glasses}"

    # Accessories
    rejected_accessories = {a.lower() for a in thresholds.rejected_accessories}
    for accessory in attributes.accessories:
        if (accessory.type.lower() in rejected_accessories
                and accessory.confidence > thresholds.max_accessory_confidence):
            return False, f"accessory {accessory.type} {accessory.confidence:.2f} > {thresholds.max_accessory_confidence}"

    # Blur / exposure / noise
    if attributes.blur.value > thresholds.max_blur:
        return False, f"blur {attributes.blur.value:.2f} > {thresholds.max_blur}"

    exposure = attributes.exposure.value
    if not thresholds.min_exposure <= exposure <= thresholds.max_exposure:
        return False, f"exposure {exposure:.2f} outside [{thresholds.min_exposure}, {thresholds.max_exposure}]"

    if attributes.noise.value > thresholds.max_noise:
        return False, f"noise {attributes.noise.value:.2f} > {thresholds.max_noise}"

    # Head pose
    pose = attributes.head_pose
    for axis, angle, limit in (
        ("roll", pose.roll, thresholds.max_roll),
        ("yaw", pose.yaw, thresholds.max_yaw),
        ("pitch", pose.pitch, thresholds.max_pitch),
    ):
        if abs(angle) > limit:
            return False, f"{axis} {angle:.1f} exceeds {limit}"

    return True, "passed"


class QualityFilter:
    """
    Frame-level filter: exactly one face, and that face passes the thresholds.

    Usage:
        qf = QualityFilter(settings.quality_thresholds())
        if qf.accepts(faces):
            # submit frame
    """

    def __init__(self, thresholds: Optional[QualityThresholds] = None):
        self.thresholds = thresholds or DEFAULT_QUALITY_THRESHOLDS

    def evaluate(self, faces: Sequence[DetectedFace]) -> FrameQualityReport:
        """Evaluate a frame's detected faces, returning the first rejection reason."""
        face_count = len(faces)
        if face_count != 1:
            return FrameQualityReport(
                passed=False,
                reason=f"face count {face_count} != 1",
                face_count=face_count,
            )

        passed, reason = passes_quality_filters(faces[0].attributes, self.thresholds)
        return FrameQualityReport(passed=passed, reason=reason, face_count=face_count)

    def accepts(self, faces: List[DetectedFace]) -> bool:
        return self.evaluate(faces).passed
