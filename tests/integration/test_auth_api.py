"""Integration tests: registration, login and the current-user endpoint."""

from __future__ import annotations

from httpx import AsyncClient


class TestRegister:
    async def test_register_returns_token_and_private_user(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "Alice@Example.com", "password": "secret123"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["token"]
        assert data["token_type"] == "bearer"
        user = data["user"]
        assert user["username"] == "alice"
        assert user["email"] == "alice@example.com"
        assert user["followers"] == [] and user["following"] == [] and user["bookmarks"] == []
        assert "password" not in user and "passwordHash" not in user

    async def test_duplicate_username(self, client: AsyncClient, register):
        await register("alice")
        response = await client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "other@example.com", "password": "secret123"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "User already exists"

    async def test_duplicate_email(self, client: AsyncClient, register):
        await register("alice")
        response = await client.post(
            "/api/auth/register",
            json={"username": "alice2", "email": "alice@example.com", "password": "secret123"},
        )
        assert response.status_code == 400

    async def test_short_password(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": "alice", "email": "alice@example.com", "password": "abc"},
        )
        assert response.status_code == 400
        assert "at least 6" in response.json()["detail"]

    async def test_unmentionable_username(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": "al ice!", "email": "alice@example.com", "password": "secret123"},
        )
        assert response.status_code == 422

    async def test_username_too_short(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register",
            json={"username": "al", "email": "alice@example.com", "password": "secret123"},
        )
        assert response.status_code == 422


class TestLogin:
    async def test_login(self, client: AsyncClient, register):
        registered = await register("alice", password="hunter22")
        response = await client.post(
            "/api/auth/login", json={"email": "ALICE@example.com", "password": "hunter22"}
        )
        assert response.status_code == 200
        assert response.json()["user"]["id"] == registered["id"]

    async def test_wrong_password(self, client: AsyncClient, register):
        await register("alice", password="hunter22")
        response = await client.post(
            "/api/auth/login", json={"email": "alice@example.com", "password": "wrong-one"}
        )
        assert response.status_code == 401

    async def test_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "whatever"}
        )
        assert response.status_code == 401


class TestMe:
    async def test_me(self, client: AsyncClient, register):
        alice = await register("alice")
        response = await client.get("/api/auth/me", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"

    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    async def test_me_rejects_bad_token(self, client: AsyncClient):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
