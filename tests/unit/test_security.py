"""
Tests for bearer token extraction and verification.
"""

import uuid

import pytest

from supplement_store.api.errors import UnauthorizedError
from supplement_store.api.security import extract_bearer_token, verify_token


class TestExtractBearerToken:
    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "header",
        [None, "", "Bearer", "Bearer ", "Basic abc", "bearer abc", "Bearer a b"],
    )
    def test_malformed_headers(self, header):
        assert extract_bearer_token(header) is None


class TestVerifyToken:
    def test_valid_token(self, token_factory):
        user_id = uuid.uuid4()
        claims = verify_token(token_factory(user_id))

        assert claims["sub"] == str(user_id)
        assert claims["aud"] == "authenticated"

    def test_expired_token(self, token_factory):
        with pytest.raises(UnauthorizedError) as exc_info:
            verify_token(token_factory(uuid.uuid4(), expires_in=-60))

        assert exc_info.value.message == "Token has expired"
        assert exc_info.value.status_code == 401

    def test_wrong_secret(self, token_factory):
        token = token_factory(uuid.uuid4(), secret="another-secret-that-is-long-enough-123")

        with pytest.raises(UnauthorizedError) as exc_info:
            verify_token(token)

        assert exc_info.value.message == "Invalid token format"

    def test_not_a_jwt(self):
        with pytest.raises(UnauthorizedError) as exc_info:
            verify_token("not-a-jwt")

        assert exc_info.value.message == "Invalid token format"
