"""Tests for the HTTP augmenter and payload parsing."""

import pytest
import requests

from contract_scope.augmentation.client import AugmentationResult, HttpAugmenter
from contract_scope.exceptions import (
    AugmentationHTTPError,
    AugmentationTimeoutError,
    AugmentationUnavailableError,
    MalformedAugmentationError,
)

GOOD_PAYLOAD = {
    "success": True,
    "workspace_id": "repo-abc",
    "overridden": ["numFunctions"],
    "factors": {"numFunctions": 12},
    "raw": {"engine": "semantic"},
    "meta": {"api_version": "v2", "timestamp": "2024-05-01T10:00:00Z"},
}


class FakeResponse:
    def __init__(self, status_code=200, payload=None, invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Records requests and replays a response or raises an error."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def _handle(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def post(self, url, **kwargs):
        return self._handle("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._handle("GET", url, **kwargs)


class TestAugmentationResult:
    def test_from_payload(self):
        result = AugmentationResult.from_payload(GOOD_PAYLOAD, "fallback-id")
        assert result.success is True
        assert result.workspace_id == "repo-abc"
        assert result.overridden == ("numFunctions",)
        assert result.factors == {"numFunctions": 12}
        assert result.raw == {"engine": "semantic"}
        assert result.api_version == "v2"
        assert result.timestamp == "2024-05-01T10:00:00Z"

    def test_workspace_id_falls_back(self):
        payload = {"success": False, "overridden": [], "factors": {}}
        result = AugmentationResult.from_payload(payload, "fallback-id")
        assert result.workspace_id == "fallback-id"
        assert result.api_version == "v1"

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            "ok",
            {"overridden": [], "factors": {}},
            {"success": True, "factors": {}},
            {"success": True, "overridden": []},
            {"success": True, "overridden": "numFunctions", "factors": {}},
            {"success": True, "overridden": [1], "factors": {}},
            {"success": True, "overridden": [], "factors": []},
            {"success": "false", "overridden": [], "factors": {}},
            {"success": 1, "overridden": [], "factors": {}},
            {"success": True, "overridden": [], "factors": {}, "meta": "v2"},
            {"success": True, "overridden": [], "factors": {}, "meta": [1]},
        ],
    )
    def test_malformed_payloads(self, payload):
        with pytest.raises(MalformedAugmentationError):
            AugmentationResult.from_payload(payload, "ws")


class TestHttpAugmenter:
    def test_posts_workspace_and_files(self):
        session = FakeSession(FakeResponse(200, GOOD_PAYLOAD))
        augmenter = HttpAugmenter("http://analyzer:8080/", timeout_seconds=30, session=session)
        result = augmenter.augment("repo-abc", ["programs/amm/src/lib.rs"])

        method, url, kwargs = session.requests[0]
        assert method == "POST"
        assert url == "http://analyzer:8080/augment"
        assert kwargs["timeout"] == 30
        assert kwargs["json"] == {
            "workspace_id": "repo-abc",
            "api_version": "v1",
            "selected_files": ["programs/amm/src/lib.rs"],
        }
        assert result.factors == {"numFunctions": 12}

    def test_selected_files_omitted_when_empty(self):
        session = FakeSession(FakeResponse(200, GOOD_PAYLOAD))
        HttpAugmenter("http://analyzer", session=session).augment("repo-abc")
        assert "selected_files" not in session.requests[0][2]["json"]

    def test_timeout(self):
        session = FakeSession(error=requests.exceptions.Timeout("slow"))
        with pytest.raises(AugmentationTimeoutError):
            HttpAugmenter("http://analyzer", session=session).augment("ws")

    def test_connection_error(self):
        session = FakeSession(error=requests.exceptions.ConnectionError("refused"))
        with pytest.raises(AugmentationUnavailableError):
            HttpAugmenter("http://analyzer", session=session).augment("ws")

    @pytest.mark.parametrize("status", [404, 500, 302])
    def test_non_2xx(self, status):
        session = FakeSession(FakeResponse(status, {}))
        with pytest.raises(AugmentationHTTPError) as exc_info:
            HttpAugmenter("http://analyzer", session=session).augment("ws")
        assert exc_info.value.status_code == status

    def test_invalid_json(self):
        session = FakeSession(FakeResponse(200, invalid_json=True))
        with pytest.raises(MalformedAugmentationError):
            HttpAugmenter("http://analyzer", session=session).augment("ws")

    def test_is_available(self):
        session = FakeSession(FakeResponse(200))
        assert HttpAugmenter("http://analyzer", session=session).is_available()
        assert session.requests[0][1] == "http://analyzer/health"
        assert session.requests[0][2]["timeout"] == 5.0

    def test_is_available_false_on_error(self):
        session = FakeSession(error=requests.exceptions.ConnectionError("refused"))
        assert not HttpAugmenter("http://analyzer", session=session).is_available()

    def test_is_available_false_on_bad_status(self):
        session = FakeSession(FakeResponse(503))
        assert not HttpAugmenter("http://analyzer", session=session).is_available()
