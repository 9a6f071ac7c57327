"""
SubTrack Backend: Auth Tests
=============================

What:  Token helpers (unit) and /api/auth endpoints (through the app).

What we test:
    ✅ Tokens round-trip to the same user id; tampered/expired ones fail
    ✅ Register returns a token, rejects duplicate e-mails
    ✅ Login accepts the right password only, case-insensitive e-mail
    ✅ /me returns the profile and never the password hash
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from subtrack.exceptions import AuthenticationError
from subtrack.services.auth_service import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class TestTokenHelpers:

    def test_round_trip(self):
        user_id = uuid4()
        assert decode_access_token(create_access_token(user_id)) == user_id

    def test_expired_token_rejected(self):
        token = create_access_token(uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_tampered_token_rejected(self):
        header, _, signature = create_access_token(uuid4()).split(".")
        foreign_payload = create_access_token(uuid4()).split(".")[1]
        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(".".join([header, foreign_payload, signature]))
        assert exc_info.value.message == "Token is not valid"

    def test_password_hashing(self):
        hashed = hash_password("hunter22")
        assert hashed != "hunter22"
        assert verify_password("hunter22", hashed)
        assert not verify_password("hunter23", hashed)


class TestRegister:

    @pytest.mark.asyncio
    async def test_register(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Carol", "email": "Carol@Example.com", "password": "secret1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["user"]["email"] == "carol@example.com"
        assert "passwordHash" not in body["user"]
        assert decode_access_token(body["token"]) is not None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_client, user):
        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Alice again", "email": "ALICE@example.com", "password": "secret1"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists"

    @pytest.mark.asyncio
    async def test_short_password(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Dan", "email": "dan@example.com", "password": "123"},
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "password"

    @pytest.mark.asyncio
    async def test_invalid_email(self, test_client):
        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Eve", "email": "not-an-email", "password": "secret1"},
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "email"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login(self, test_client, user, user_password):
        response = await test_client.post(
            "/api/auth/login",
            json={"email": "Alice@Example.com", "password": user_password},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert decode_access_token(body["token"]) == user.id

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client, user):
        response = await test_client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_email_same_message(self, test_client):
        response = await test_client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": "whatever"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


class TestMe:

    @pytest.mark.asyncio
    async def test_me(self, test_client, auth_headers, user):
        response = await test_client.get("/api/auth/me", headers=auth_headers)

        assert response.status_code == 200
        profile = response.json()["user"]
        assert profile["id"] == str(user.id)
        assert profile["name"] == "Alice"
        assert set(profile) == {"id", "name", "email", "createdAt"}

    @pytest.mark.asyncio
    async def test_token_for_unknown_account(self, test_client):
        headers = {"Authorization": f"Bearer {create_access_token(uuid4())}"}

        response = await test_client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_registered_token_works_for_subscriptions(self, test_client):
        registered = await test_client.post(
            "/api/auth/register",
            json={"name": "Frank", "email": "frank@example.com", "password": "secret1"},
        )
        headers = {"Authorization": f"Bearer {registered.json()['token']}"}

        response = await test_client.get("/api/subscriptions", headers=headers)

        assert response.status_code == 200
        assert response.json()["count"] == 0
