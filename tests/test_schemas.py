import pytest
from pydantic import ValidationError

from marketplace.models.users import UserRole
from marketplace.schemas.catalog import ProductCreate, ProductUpdate, StockUpdate
from marketplace.schemas.user import (
    SignupRequest, ResetPasswordRequest, UserResponse, ProfileUpdate, ProfileResponse,
)


def test_signup_request_aliases():
    body = SignupRequest(**{
        "name": "Ana",
        "email": "ana@example.com",
        "password": "secret123",
        "confirmPassword": "secret123",
        "role": "admin",
        "adminPassword": "code",
    })
    assert body.confirm_password == "secret123"
    assert body.admin_password == "code"


def test_signup_request_allows_missing_fields():
    body = SignupRequest()
    assert body.email is None


def test_signup_request_leaves_email_format_to_the_service():
    # format is checked after the admin gate, inside AuthService.register
    assert SignupRequest(email="not-an-email").email == "not-an-email"


def test_reset_password_alias():
    assert ResetPasswordRequest(token="t", newPassword="secret123").new_password == "secret123"
    assert ResetPasswordRequest(token="t", new_password="secret123").new_password == "secret123"


def test_user_response_reads_sid():
    class Row:
        sid = "abc"
        name = "Ana"
        email = "ana@example.com"
        role = UserRole.USER
        phone = None
        description = None
        profile_photo = None

    body = UserResponse.model_validate(Row())
    assert body.user_id == "abc"
    assert body.model_dump()["role"] == UserRole.USER


def test_profile_update_company_name_alias():
    update = ProfileUpdate(company_name="Tienda")
    assert update.model_dump(exclude_unset=True) == {"companyName": "Tienda"}


def test_profile_response_default_company():
    body = ProfileResponse(user_id="abc", name="Ana", email="ana@example.com", role="user")
    assert body.companyInfo.companyName == ""


def test_product_create_strips_text():
    product = ProductCreate(code="  A1 ", name=" Pan ")
    assert product.code == "A1"
    assert product.name == "Pan"
    assert product.price == 0.0
    assert product.stock == 0


def test_product_create_rejects_blank_and_negative():
    with pytest.raises(ValidationError):
        ProductCreate(code="   ", name="Pan")
    with pytest.raises(ValidationError):
        ProductCreate(code="A1", name="Pan", stock=-1)


def test_product_update_partial():
    assert ProductUpdate(price=3.0).model_dump(exclude_unset=True) == {"price": 3.0}


def test_stock_update_requires_positive_quantity():
    with pytest.raises(ValidationError):
        StockUpdate(code="A1", quantity=0)
