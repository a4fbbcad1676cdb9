"""Tests for outcome models."""

from datetime import datetime

import pytest

from namaste_client.errors.exceptions import ServerError
from namaste_client.errors.models import ErrorBody, Failure, FailureKind, Success


class TestFailureKind:
    @pytest.mark.unit
    def test_network_predicate(self):
        assert FailureKind.NETWORK.is_network
        assert FailureKind.TIMEOUT.is_network
        assert not FailureKind.SERVER.is_network

    @pytest.mark.unit
    def test_auth_is_a_client_error(self):
        assert FailureKind.AUTH.is_client_error
        assert FailureKind.CLIENT.is_client_error
        assert not FailureKind.PARSE.is_client_error


class TestSuccess:
    @pytest.mark.unit
    def test_unwrap_returns_data(self):
        success = Success(data={"items": []}, status=200)
        assert success.ok
        assert success.unwrap() == {"items": []}


class TestFailure:
    @pytest.mark.unit
    def test_defaults(self):
        failure = Failure(kind=FailureKind.NETWORK, message="ConnectError", path="codesystems")

        assert not failure.ok
        assert failure.status is None
        assert failure.code is None
        assert isinstance(failure.timestamp, datetime)
        assert failure.timestamp.tzinfo is not None

    @pytest.mark.unit
    def test_unwrap_raises(self):
        failure = Failure(kind=FailureKind.SERVER, status=502, message="Bad Gateway", path="codesystems")

        with pytest.raises(ServerError):
            failure.unwrap()

    @pytest.mark.unit
    def test_to_dict(self):
        failure = Failure(kind=FailureKind.CLIENT, status=400, code="BAD", message="Bad", path="mappings")

        data = failure.to_dict()

        assert data["kind"] == "CLIENT"
        assert data["status"] == 400
        assert data["code"] == "BAD"
        assert data["path"] == "mappings"
        assert datetime.fromisoformat(data["timestamp"]) == failure.timestamp


class TestErrorBody:
    @pytest.mark.unit
    def test_api_error_shape(self):
        body = ErrorBody.from_payload({"code": "E1", "message": "Broken", "details": [1, 2]})
        assert body == ErrorBody(code="E1", message="Broken", details=[1, 2])

    @pytest.mark.unit
    def test_numeric_code_stringified(self):
        assert ErrorBody.from_payload({"code": 4001}).code == "4001"

    @pytest.mark.unit
    def test_problem_detail_fallback(self):
        assert ErrorBody.from_payload({"title": "Conflict"}).message == "Conflict"
        assert ErrorBody.from_payload({"title": "Conflict", "detail": "Version mismatch"}).message == "Version mismatch"

    @pytest.mark.unit
    @pytest.mark.parametrize("payload", [None, "text body", [1, 2], {}])
    def test_no_fields(self, payload):
        assert ErrorBody.from_payload(payload) == ErrorBody()
