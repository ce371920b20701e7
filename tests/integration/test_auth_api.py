"""
Integration tests for authentication and the /me endpoints.
"""

import uuid

import pytest


class TestAuthentication:
    def test_missing_header(self, client):
        response = client.get("/api/v1/me")

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "UNAUTHORIZED"
        assert error["message"] == "Access token required"

    @pytest.mark.parametrize("header", ["Token abc", "Bearer", "Bearer a b"])
    def test_malformed_header(self, client, header):
        response = client.get("/api/v1/me", headers={"Authorization": header})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Access token required"

    def test_expired_token(self, client, auth_gateway, user):
        token = auth_gateway.issue_token(user, expires_in=-60)

        response = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Token has expired"

    def test_garbage_token(self, client):
        response = client.get("/api/v1/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid token format"

    def test_token_unknown_to_supabase(self, client, token_factory):
        token = token_factory(uuid.uuid4())

        response = client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid or expired token"


class TestMe:
    def test_first_call_creates_profile(self, client, user, user_headers):
        response = client.get("/api/v1/me", headers=user_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == str(user.id)
        assert data["user"]["email"] == "customer@example.com"
        assert data["profile"]["role"] == "user"
        assert data["profile"]["terms_accepted_at"] is None

    def test_admin_profile(self, client, admin_headers):
        response = client.get("/api/v1/me", headers=admin_headers)

        assert response.json()["profile"]["role"] == "admin"

    def test_accept_terms(self, client, user_headers):
        response = client.post("/api/v1/me/accept-terms", headers=user_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Terms accepted successfully"
        assert data["profile"]["terms_accepted_at"] is not None

        me = client.get("/api/v1/me", headers=user_headers).json()
        assert me["profile"]["terms_accepted_at"] == data["profile"]["terms_accepted_at"]

    def test_accept_terms_requires_auth(self, client):
        assert client.post("/api/v1/me/accept-terms").status_code == 401
