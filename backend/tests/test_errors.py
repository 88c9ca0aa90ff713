"""Tests for the error taxonomy and how it reaches HTTP clients."""

import pytest

from stockroom.core.errors import ErrorKind, ServiceError, conflict, not_found, validation_error


class TestServiceError:
    @pytest.mark.parametrize("kind, status_code", [
        (ErrorKind.VALIDATION, 400),
        (ErrorKind.UNAUTHORIZED, 401),
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.CONFLICT, 409),
        (ErrorKind.TOO_LARGE, 413),
        (ErrorKind.CONFIGURATION, 500),
        (ErrorKind.UPSTREAM, 500),
        (ErrorKind.STORAGE, 500),
    ])
    def test_status_codes(self, kind, status_code):
        assert ServiceError(kind, "x").status_code == status_code

    def test_to_dict_without_line(self):
        assert not_found("Invoice not found").to_dict() == {
            "detail": "Invoice not found",
            "errorKind": "not_found",
        }

    def test_to_dict_with_line(self):
        error = validation_error("Invalid quantity for line 3", line="line 3")
        assert error.to_dict()["line"] == "line 3"
        assert str(error) == "Invalid quantity for line 3"

    def test_conflict_helper(self):
        assert conflict("Invoice already applied").kind == ErrorKind.CONFLICT


class TestErrorResponses:
    def test_request_validation_is_400(self, client, auth_headers):
        response = client.post("/suppliers", json={}, headers=auth_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["errorKind"] == "validation"
        assert "name" in body["detail"]

    def test_non_positive_path_id_is_400(self, client, auth_headers):
        response = client.get("/products/0", headers=auth_headers)
        assert response.status_code == 400

    def test_unknown_route_is_404(self, client):
        response = client.get("/no-such-thing")
        assert response.status_code == 404
        assert response.json()["errorKind"] == "not_found"

    def test_unexpected_failure_is_generic_500(self, client, auth_headers, stored_invoice, fake_extractor):
        fake_extractor.error = RuntimeError("secret internals")
        response = client.post(f"/invoices/{stored_invoice.id}/parse", headers=auth_headers)
        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error", "errorKind": "internal"}
