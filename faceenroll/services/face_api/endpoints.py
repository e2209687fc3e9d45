"""
Face API paths, relative to `{endpoint}/face/v1.0/`.
"""

DETECT_ENDPOINT = "detect"
VERIFY_ENDPOINT = "verify"

# Face attributes to retrieve on detect (consumed by the quality filter)
FACE_ATTRIBUTES = "headPose,occlusion,glasses,accessories,blur,exposure,noise"

# Fragment the service puts in the 404 message for a missing person
PERSON_NOT_FOUND = "Person is not found."


def person_group_endpoint(group_id: str) -> str:
    return f"largepersongroups/{group_id}"


def persons_endpoint(group_id: str) -> str:
    return f"{person_group_endpoint(group_id)}/persons"


def person_endpoint(group_id: str, person_id: str) -> str:
    return f"{persons_endpoint(group_id)}/{person_id}"


def add_face_endpoint(group_id: str, person_id: str) -> str:
    return f"{person_endpoint(group_id, person_id)}/persistedfaces"


def train_endpoint(group_id: str) -> str:
    return f"{person_group_endpoint(group_id)}/train"


def training_status_endpoint(group_id: str) -> str:
    return f"{person_group_endpoint(group_id)}/training"
