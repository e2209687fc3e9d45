"""
Tests for the face service client, run against httpx.MockTransport.
"""

import json

import httpx
import pytest

from faceenroll.core.exceptions import ServiceError
from faceenroll.models.domain.face import FaceRectangle
from faceenroll.services.face_api import FaceApiBase, parse_service_error

from conftest import GROUP_ID, PERSON_ID, detect_payload, error_response, json_response

API_ROOT = "/face/v1.0"


class TestBaseClient:
    def test_missing_key_rejected(self):
        with pytest.raises(ValueError):
            FaceApiBase(base_url="https://faces.example.com/face/v1.0/", subscription_key="", user_agent="x")

    def test_base_url_has_version_prefix(self, test_settings):
        assert test_settings.face_api_base_url == "https://faces.example.com/face/v1.0/"

    @pytest.mark.asyncio
    async def test_headers_sent(self, make_face_api):
        face_api, transport = make_face_api(lambda request: json_response(200, {"personId": PERSON_ID}))
        await face_api.create_person(GROUP_ID)
        await face_api.aclose()

        request = transport.requests[0]
        assert request.headers["Ocp-Apim-Subscription-Key"] == "test-key"
        assert request.headers["User-Agent"] == "faceenroll-tests/1.0"
        assert request.headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_service_error(self, make_face_api):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        face_api, _ = make_face_api(handler)
        with pytest.raises(ServiceError) as exc_info:
            await face_api.create_person(GROUP_ID)
        await face_api.aclose()

        assert exc_info.value.operation == "create_person"
        assert exc_info.value.code == "SERVICE_ERROR"
        assert exc_info.value.to_dict()["operation"] == "create_person"

    def test_parse_service_error(self):
        code, message = parse_service_error(error_response(404, "PersonNotFound", "Person is not found."))
        assert code == "PersonNotFound"
        assert message == "Person is not found."

    def test_parse_service_error_plain_text(self):
        code, message = parse_service_error(httpx.Response(500, text="upstream down"))
        assert code is None
        assert message == "upstream down"


class TestPersons:
    @pytest.mark.asyncio
    async def test_create_person(self, make_face_api):
        face_api, transport = make_face_api(lambda request: json_response(200, {"personId": PERSON_ID}))
        person_id = await face_api.create_person(GROUP_ID)
        await face_api.aclose()

        assert person_id == PERSON_ID
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path == f"{API_ROOT}/largepersongroups/{GROUP_ID}/persons"
        assert json.loads(request.content) == {"name": "person-name"}

    @pytest.mark.asyncio
    async def test_create_person_failure(self, make_face_api):
        face_api, _ = make_face_api(lambda request: error_response(429, "RateLimitExceeded", "Slow down"))
        with pytest.raises(ServiceError) as exc_info:
            await face_api.create_person(GROUP_ID)
        await face_api.aclose()

        assert exc_info.value.status_code == 429
        assert exc_info.value.details["service_code"] == "RateLimitExceeded"

    @pytest.mark.asyncio
    async def test_delete_person(self, make_face_api):
        face_api, transport = make_face_api(lambda request: httpx.Response(200))
        assert await face_api.delete_person(GROUP_ID, PERSON_ID) is True
        await face_api.aclose()

        request = transport.requests[0]
        assert request.method == "DELETE"
        assert request.url.path == f"{API_ROOT}/largepersongroups/{GROUP_ID}/persons/{PERSON_ID}"

    @pytest.mark.asyncio
    async def test_delete_absent_person(self, make_face_api):
        face_api, _ = make_face_api(
            lambda request: error_response(404, "PersonNotFound", "Person is not found.")
        )
        assert await face_api.delete_person(GROUP_ID, PERSON_ID) is False
        await face_api.aclose()

    @pytest.mark.asyncio
    async def test_delete_other_404_raises(self, make_face_api):
        face_api, _ = make_face_api(
            lambda request: error_response(404, "LargePersonGroupNotFound", "Large person group is not found.")
        )
        with pytest.raises(ServiceError):
            await face_api.delete_person(GROUP_ID, PERSON_ID)
        await face_api.aclose()

    @pytest.mark.asyncio
    async def test_add_face_accepted(self, make_face_api):
        face_api, transport = make_face_api(lambda request: json_response(200, {"persistedFaceId": "pf-1"}))
        rect = FaceRectangle(top=5, left=7, width=90, height=110)
        outcome = await face_api.add_face(GROUP_ID, PERSON_ID, b"jpeg-bytes", rect)
        await face_api.aclose()

        assert outcome.accepted is True
        assert outcome.persisted_face_id == "pf-1"
        request = transport.requests[0]
        assert request.url.path.endswith(f"/persons/{PERSON_ID}/persistedfaces")
        assert request.url.params["targetFace"] == "7,5,90,110"
        assert request.url.params["detectionModel"] == "detection_01"
        assert request.headers["Content-Type"] == "application/octet-stream"
        assert request.content == b"jpeg-bytes"

    @pytest.mark.asyncio
    async def test_add_face_rejected(self, make_face_api):
        face_api, _ = make_face_api(
            lambda request: error_response(400, "InvalidImage", "There is more than 1 face in the image.")
        )
        outcome = await face_api.add_face(GROUP_ID, PERSON_ID, b"jpeg-bytes")
        await face_api.aclose()

        assert outcome.accepted is False
        assert "more than 1 face" in outcome.reason

    @pytest.mark.asyncio
    async def test_add_face_server_error_raises(self, make_face_api):
        face_api, _ = make_face_api(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(ServiceError) as exc_info:
            await face_api.add_face(GROUP_ID, PERSON_ID, b"jpeg-bytes")
        await face_api.aclose()
        assert exc_info.value.status_code == 500


class TestDetection:
    @pytest.mark.asyncio
    async def test_detect(self, make_face_api):
        face_api, transport = make_face_api(lambda request: json_response(200, detect_payload("face-1")))
        faces = await face_api.detect(b"jpeg-bytes")
        await face_api.aclose()

        assert len(faces) == 1
        face = faces[0]
        assert face.face_id == "face-1"
        assert face.rectangle.to_target_face() == "7,5,90,110"
        assert face.attributes.head_pose.yaw == -2.0
        assert face.attributes.exposure.level == "goodExposure"

        params = transport.requests[0].url.params
        assert params["returnFaceId"] == "true"
        assert params["recognitionModel"] == "recognition_03"
        assert "headPose" in params["returnFaceAttributes"]

    @pytest.mark.asyncio
    async def test_verify(self, make_face_api):
        def handler(request):
            if request.url.path.endswith("/detect"):
                return json_response(200, detect_payload("face-9"))
            return json_response(200, {"isIdentical": True, "confidence": 0.82})

        face_api, transport = make_face_api(handler)
        result = await face_api.verify(GROUP_ID, PERSON_ID, b"jpeg-bytes")
        await face_api.aclose()

        assert result.is_identical is True
        assert result.passes(0.5) is True
        body = json.loads(transport.requests[1].content)
        assert body == {"faceId": "face-9", "personId": PERSON_ID, "largePersonGroupId": GROUP_ID}

    @pytest.mark.asyncio
    async def test_verify_without_single_face(self, make_face_api):
        face_api, transport = make_face_api(lambda request: json_response(200, detect_payload("a", "b")))
        result = await face_api.verify(GROUP_ID, PERSON_ID, b"jpeg-bytes")
        await face_api.aclose()

        assert result.is_identical is False
        assert len(transport.requests) == 1


class TestPersonGroups:
    @pytest.mark.asyncio
    async def test_existing_group(self, make_face_api):
        face_api, transport = make_face_api(lambda request: json_response(200, {"largePersonGroupId": GROUP_ID}))
        assert await face_api.ensure_person_group(GROUP_ID) is True
        await face_api.aclose()
        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_missing_group_created(self, make_face_api):
        def handler(request):
            if request.method == "GET":
                return error_response(404, "LargePersonGroupNotFound", "Large person group is not found.")
            return httpx.Response(200)

        face_api, transport = make_face_api(handler)
        assert await face_api.ensure_person_group(GROUP_ID) is True
        await face_api.aclose()

        put = transport.requests[1]
        assert put.method == "PUT"
        assert json.loads(put.content) == {"name": GROUP_ID, "recognitionModel": "recognition_03"}

    @pytest.mark.asyncio
    async def test_group_validation_failure(self, make_face_api):
        face_api, _ = make_face_api(lambda request: error_response(401, "Unspecified", "Access denied"))
        assert await face_api.ensure_person_group(GROUP_ID) is False
        await face_api.aclose()

    @pytest.mark.asyncio
    async def test_train_accepted(self, make_face_api):
        face_api, transport = make_face_api(lambda request: httpx.Response(202))
        assert await face_api.train(GROUP_ID) is True
        await face_api.aclose()
        assert transport.requests[0].url.path == f"{API_ROOT}/largepersongroups/{GROUP_ID}/train"

    @pytest.mark.asyncio
    async def test_train_refused(self, make_face_api):
        face_api, _ = make_face_api(lambda request: error_response(409, "PersonGroupTrainingNotFinished", "busy"))
        assert await face_api.train(GROUP_ID) is False
        await face_api.aclose()

    @pytest.mark.asyncio
    async def test_training_status(self, make_face_api):
        face_api, _ = make_face_api(lambda request: json_response(200, {"status": "running"}))
        assert await face_api.get_training_status(GROUP_ID) == "running"
        await face_api.aclose()

    @pytest.mark.asyncio
    async def test_delete_group(self, make_face_api):
        face_api, transport = make_face_api(lambda request: httpx.Response(200))
        assert await face_api.delete_person_group(GROUP_ID) is True
        await face_api.aclose()
        assert transport.requests[0].method == "DELETE"


class TestUnreadableBodies:
    @pytest.mark.asyncio
    async def test_detect_html_body(self, make_face_api):
        face_api, _ = make_face_api(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        with pytest.raises(ServiceError) as exc_info:
            await face_api.detect(b"jpeg-bytes")
        await face_api.aclose()

        assert exc_info.value.operation == "detect"
        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_detect_wrong_shape(self, make_face_api):
        face_api, _ = make_face_api(lambda request: json_response(200, {"faces": []}))
        with pytest.raises(ServiceError):
            await face_api.detect(b"jpeg-bytes")
        await face_api.aclose()

    @pytest.mark.asyncio
    async def test_verify_invalid_confidence(self, make_face_api):
        face_api, _ = make_face_api(
            lambda request: json_response(200, {"isIdentical": True, "confidence": "high"})
        )
        with pytest.raises(ServiceError) as exc_info:
            await face_api.verify_face(GROUP_ID, PERSON_ID, "face-1")
        await face_api.aclose()
        assert exc_info.value.operation == "verify"

    @pytest.mark.asyncio
    async def test_create_person_missing_id(self, make_face_api):
        face_api, _ = make_face_api(lambda request: json_response(200, {"name": "person-name"}))
        with pytest.raises(ServiceError) as exc_info:
            await face_api.create_person(GROUP_ID)
        await face_api.aclose()
        assert exc_info.value.operation == "create_person"

    @pytest.mark.asyncio
    async def test_add_face_list_body(self, make_face_api):
        face_api, _ = make_face_api(lambda request: json_response(200, ["pf-1"]))
        with pytest.raises(ServiceError):
            await face_api.add_face(GROUP_ID, PERSON_ID, b"jpeg-bytes")
        await face_api.aclose()
