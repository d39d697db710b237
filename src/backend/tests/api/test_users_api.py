"""
Tests for sign-up, verification and user endpoints.
"""

import pytest
from httpx import AsyncClient

from core.exceptions import StoreUnavailable
from repositories.keyed_store import KeyedStore


async def sign_up_and_verify(client: AsyncClient, mail_sender, nickname: str, email: str) -> tuple[str, str]:
    response = await client.post("/api/v1/user/signup", json={"nickname": nickname, "email": email})
    assert response.status_code == 202
    user_id, code = mail_sender.last_link()

    response = await client.get(f"/api/v1/user/{user_id}/code/{code}")
    assert response.status_code == 200
    return user_id, response.json()["access_token"]


@pytest.mark.unit
class TestSignUpFlow:
    """Test the sign-up to bearer-token flow over HTTP."""

    async def test_sign_up_sends_link(self, client: AsyncClient, mail_sender) -> None:
        response = await client.post(
            "/api/v1/user/signup",
            json={"nickname": "alice", "email": "alice@example.com"},
        )

        assert response.status_code == 202
        user_id, code = mail_sender.last_link()
        assert response.json()["user_id"] == user_id
        assert code not in response.text

    async def test_sign_up_rejects_bad_email(self, client: AsyncClient, mail_sender) -> None:
        response = await client.post("/api/v1/user/signup", json={"nickname": "alice", "email": "nope"})

        assert response.status_code == 422
        assert mail_sender.sent == []

    async def test_verify_returns_bearer_token(self, client: AsyncClient, mail_sender) -> None:
        user_id, token = await sign_up_and_verify(client, mail_sender, "alice", "alice@example.com")

        response = await client.get(f"/api/v1/user/{user_id}/check", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"user_id": user_id, "authorized": True}

    async def test_wrong_code_is_401(self, client: AsyncClient, mail_sender) -> None:
        await client.post("/api/v1/user/signup", json={"nickname": "alice", "email": "alice@example.com"})
        user_id, code = mail_sender.last_link()

        response = await client.get(f"/api/v1/user/{user_id}/code/{'0' * 64}")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

        response = await client.get(f"/api/v1/user/{user_id}/code/{code}")
        assert response.status_code == 200

    async def test_check_without_header_is_false(self, client: AsyncClient, mail_sender) -> None:
        user_id, _ = await sign_up_and_verify(client, mail_sender, "alice", "alice@example.com")

        response = await client.get(f"/api/v1/user/{user_id}/check")

        assert response.status_code == 200
        assert response.json()["authorized"] is False


@pytest.mark.unit
class TestUserRecords:
    """Test guarded user reads and deletes."""

    async def test_get_own_user(self, client: AsyncClient, mail_sender) -> None:
        user_id, token = await sign_up_and_verify(client, mail_sender, "alice", "alice@example.com")

        response = await client.get(f"/api/v1/user/{user_id}", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json() == {"id": user_id, "nickname": "alice", "is_verified": True}

    async def test_get_other_user_is_401(self, client: AsyncClient, mail_sender) -> None:
        _, alice_token = await sign_up_and_verify(client, mail_sender, "alice", "alice@example.com")
        bob_id, _ = await sign_up_and_verify(client, mail_sender, "bob", "bob@example.com")

        response = await client.get(f"/api/v1/user/{bob_id}", headers={"Authorization": f"Bearer {alice_token}"})

        assert response.status_code == 401

    async def test_delete_own_user(self, client: AsyncClient, mail_sender) -> None:
        user_id, token = await sign_up_and_verify(client, mail_sender, "alice", "alice@example.com")
        headers = {"Authorization": f"Bearer {token}"}

        response = await client.delete(f"/api/v1/user/{user_id}", headers=headers)
        assert response.status_code == 204

        response = await client.get(f"/api/v1/user/{user_id}", headers=headers)
        assert response.status_code == 401

    async def test_batch_lookup(self, client: AsyncClient, mail_sender) -> None:
        alice_id, _ = await sign_up_and_verify(client, mail_sender, "alice", "alice@example.com")
        bob_id, _ = await sign_up_and_verify(client, mail_sender, "bob", "bob@example.com")

        response = await client.post("/api/v1/users", json={"ids": [alice_id, bob_id]})

        assert response.status_code == 200
        assert [user["nickname"] for user in response.json()] == ["alice", "bob"]

    async def test_batch_lookup_unknown_is_404(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/users", json={"ids": ["missing"]})
        assert response.status_code == 404


@pytest.mark.unit
class TestStoreErrors:
    """Test store failures surface as distinct HTTP errors."""

    async def test_unavailable_store_is_503(self, client: AsyncClient, store: KeyedStore, monkeypatch) -> None:
        async def fail(*args, **kwargs):
            raise StoreUnavailable("down")

        monkeypatch.setattr(store, "get", fail)

        response = await client.post("/api/v1/user/signup", json={"nickname": "alice", "email": "alice@example.com"})

        assert response.status_code == 503
