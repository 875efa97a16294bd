import uuid

import pytest
from httpx import AsyncClient
from jose import jwt

from tutorcenter.auth.security import create_access_token, decode_access_token
from tutorcenter.core.config import settings


def test_token_round_trip() -> None:
    user_id = uuid.uuid4()
    claims = decode_access_token(create_access_token(user_id, "ADMIN", name="Front desk"))
    assert claims["sub"] == str(user_id)
    assert claims["role"] == "ADMIN"
    assert claims["name"] == "Front desk"


@pytest.mark.asyncio
async def test_expired_token_rejected(client: AsyncClient) -> None:
    token = create_access_token(uuid.uuid4(), "TEACHER", expires_minutes=-1)
    response = await client.get("/api/v1/holidays", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_without_role_rejected(client: AsyncClient) -> None:
    token = jwt.encode({"sub": str(uuid.uuid4())}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    response = await client.get("/api/v1/holidays", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/v1/holidays", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_valid_token_accepted(client: AsyncClient, auth_headers) -> None:
    response = await client.get("/api/v1/holidays", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == []
