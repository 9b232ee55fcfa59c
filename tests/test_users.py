import pytest
from sqlalchemy import select

from marketplace.core.config import settings
from marketplace.models.catalog import Product
from marketplace.models.users import User, Company

USERS = f"{settings.API_PREFIX}/users"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_admin_lists_users(client, admin_token, test_user, admin_user):
    response = await client.get(USERS, headers=bearer(admin_token))
    assert response.status_code == 200
    emails = {user["email"] for user in response.json()}
    assert emails == {test_user["email"], admin_user["email"]}
    assert all("password_hash" not in user for user in response.json())


@pytest.mark.asyncio
async def test_list_users_requires_token(client):
    response = await client.get(USERS)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_own_user(authorized_client, test_user):
    response = await authorized_client.get(f"{USERS}/{test_user['sid']}")
    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == test_user["sid"]
    assert body["role"] == "user"


@pytest.mark.asyncio
async def test_get_other_user_forbidden(authorized_client, other_user):
    response = await authorized_client.get(f"{USERS}/{other_user['sid']}")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_gets_any_user(client, admin_token, test_user):
    response = await client.get(f"{USERS}/{test_user['sid']}", headers=bearer(admin_token))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_profile_via_users_route(authorized_client, db_session, test_user):
    response = await authorized_client.put(f"{USERS}/update-profile", json={
        "name": "Ana María",
        "phone": "+57 300 000 0000",
        "company_name": "Tienda Ana",
    })
    assert response.status_code == 200
    assert response.json()["message"] == "Perfil actualizado correctamente"

    db_session.expire_all()
    user = (await db_session.execute(select(User).where(User.sid == test_user["sid"]))).scalar_one()
    assert user.name == "Ana María"
    assert user.phone == "+57 300 000 0000"
    company = (await db_session.execute(select(Company).where(Company.user_sid == test_user["sid"]))).scalar_one()
    assert company.name == "Tienda Ana"


@pytest.mark.asyncio
async def test_update_profile_email_taken(authorized_client, other_user):
    response = await authorized_client.put(f"{USERS}/update-profile", json={"email": other_user["email"]})
    assert response.status_code == 400
    assert response.json()["message"] == "El correo ya está registrado."


@pytest.mark.asyncio
async def test_delete_own_account(authorized_client, db_session, test_user, test_product):
    response = await authorized_client.delete(f"{USERS}/{test_user['sid']}")
    assert response.status_code == 200
    assert response.json()["message"] == "Usuario eliminado exitosamente"

    db_session.expire_all()
    assert (await db_session.execute(select(User).where(User.sid == test_user["sid"]))).scalar_one_or_none() is None
    assert (await db_session.execute(select(Product).where(Product.user_sid == test_user["sid"]))).all() == []


@pytest.mark.asyncio
async def test_delete_other_user_forbidden(authorized_client, other_user):
    response = await authorized_client.delete(f"{USERS}/{other_user['sid']}")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_missing_user(client, admin_token):
    response = await client.delete(f"{USERS}/doesnotexist", headers=bearer(admin_token))
    assert response.status_code == 404
    assert response.json()["message"] == "Usuario no encontrado."
