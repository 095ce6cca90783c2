"""Tests for X-Request-ID middleware.

Tests cover:
- Request ID generation when missing
- Request ID preservation when valid
- Request ID normalization (UUID lowercase)
- Request ID replacement when invalid
- Request ID presence on auth failures
- Request ID in error response body
"""

from uuid import UUID

import pytest

from sitebuilder.middleware.request_id import accept_or_generate_request_id
from tests.helpers import auth_headers


class TestRequestIdMiddleware:
    def test_request_id_generated_when_missing(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            "/api/user/credits", headers=auth_headers(test_user_id)
        )

        assert response.status_code == 200
        UUID(response.headers["X-Request-ID"])

    def test_request_id_preserved_when_valid(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            "/api/user/credits",
            headers={**auth_headers(test_user_id), "X-Request-ID": "abc_def-123"},
        )

        assert response.headers["X-Request-ID"] == "abc_def-123"

    def test_request_id_uuid_normalized_to_lowercase(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            "/api/user/credits",
            headers={
                **auth_headers(test_user_id),
                "X-Request-ID": "550E8400-E29B-41D4-A716-446655440000",
            },
        )

        assert response.headers["X-Request-ID"] == "550e8400-e29b-41d4-a716-446655440000"

    def test_request_id_replaced_when_invalid(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            "/api/user/credits",
            headers={**auth_headers(test_user_id), "X-Request-ID": "has spaces"},
        )

        request_id = response.headers["X-Request-ID"]
        assert request_id != "has spaces"
        UUID(request_id)

    def test_request_id_on_auth_failure(self, authenticated_client):
        response = authenticated_client.get(
            "/api/user/credits", headers={"X-Request-ID": "trace-401"}
        )

        assert response.status_code == 401
        assert response.headers["X-Request-ID"] == "trace-401"
        assert response.json()["error"]["request_id"] == "trace-401"

    def test_request_id_in_service_error_body(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            "/api/project/preview/not-a-uuid",
            headers={**auth_headers(test_user_id), "X-Request-ID": "trace-404"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["request_id"] == "trace-404"


class TestAcceptOrGenerate:
    @pytest.mark.parametrize("incoming", [None, "", "a" * 129, "bad/char", "ünïcode"])
    def test_rejected_values_get_fresh_uuid(self, incoming):
        UUID(accept_or_generate_request_id(incoming))

    def test_max_length_accepted(self):
        assert accept_or_generate_request_id("a" * 128) == "a" * 128
