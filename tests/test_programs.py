import pytest

from marketplace.core.config import settings

PROGRAM = f"{settings.API_PREFIX}/program"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_start_program(authorized_client, test_user):
    response = await authorized_client.post(f"{PROGRAM}/start", json={"duration": 30, "mode": "intensivo"})
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Programa iniciado exitosamente."
    assert body["program_id"]

    response = await authorized_client.get(f"{PROGRAM}/active")
    assert response.status_code == 200
    programs = response.json()
    assert len(programs) == 1
    assert programs[0]["sid"] == body["program_id"]
    assert programs[0]["created_by_sid"] == test_user["sid"]
    assert programs[0]["active"] is True


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {},
    {"duration": 30},
    {"mode": "intensivo"},
    {"duration": 0, "mode": "intensivo"},
    {"duration": 10, "mode": "   "},
])
async def test_start_program_requires_duration_and_mode(authorized_client, payload):
    response = await authorized_client.post(f"{PROGRAM}/start", json=payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Duración y modo son obligatorios."


@pytest.mark.asyncio
async def test_stop_program(authorized_client):
    response = await authorized_client.post(f"{PROGRAM}/start", json={"duration": 15, "mode": "libre"})
    program_id = response.json()["program_id"]

    response = await authorized_client.put(f"{PROGRAM}/{program_id}/stop")
    assert response.status_code == 200
    assert response.json()["active"] is False

    response = await authorized_client.get(f"{PROGRAM}/active")
    assert response.json() == []


@pytest.mark.asyncio
async def test_stop_program_of_other_user(client, test_token, other_token, admin_token):
    response = await client.post(f"{PROGRAM}/start", json={"duration": 15, "mode": "libre"}, headers=bearer(test_token))
    program_id = response.json()["program_id"]

    response = await client.put(f"{PROGRAM}/{program_id}/stop", headers=bearer(other_token))
    assert response.status_code == 403

    response = await client.put(f"{PROGRAM}/{program_id}/stop", headers=bearer(admin_token))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_stop_unknown_program(authorized_client):
    response = await authorized_client.put(f"{PROGRAM}/missing/stop")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_programs_require_token(client):
    response = await client.post(f"{PROGRAM}/start", json={"duration": 30, "mode": "intensivo"})
    assert response.status_code == 401
