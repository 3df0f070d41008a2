import uuid
from datetime import datetime, UTC
from unittest.mock import AsyncMock

import pytest

from app.dependencies import get_current_user, require_admin
from app.exceptions import NotFoundError
from app.models.letter import Commission, CommissionStatus
from app.models.user import UserRole
from app.services.letter_service import letter_service
from app.services.referral_service import referral_service
from app.services.user_repository import user_repository

COMMISSION_ID = "3f2b9c1a-8e4d-4b7a-9c0e-5d6f7a8b9c0d"


@pytest.fixture
def admin_client(client, as_current_user):
    client.app.dependency_overrides[require_admin] = as_current_user(
        user_id="admin-1", role=UserRole.ADMIN, email="admin@example.com"
    )
    return client


def make_commission(**overrides):
    data = {
        "id": "c1",
        "remote_employee_id": "emp-1",
        "user_id": "user-1",
        "user_email": "jane@example.com",
        "plan_id": "basic",
        "subscription_amount": 159.2,
        "commission_amount": 7.96,
        "created_at": datetime(2024, 5, 1, tzinfo=UTC),
    }
    data.update(overrides)
    return Commission(**data)


def test_regular_user_cannot_reach_admin_routes(client, as_current_user):
    client.app.dependency_overrides[get_current_user] = as_current_user()
    response = client.get("/api/admin/users")
    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient permissions"


def test_list_users(admin_client, monkeypatch):
    users = [
        {"id": "u2", "email": "b@example.com", "role": "user"},
        {"id": "u1", "email": "a@example.com", "role": "remote_employee"},
    ]
    get_all = AsyncMock(return_value=users)
    monkeypatch.setattr(user_repository, "get_all_users", get_all)

    response = admin_client.get("/api/admin/users")

    assert response.status_code == 200
    assert response.json()["data"] == {"users": users, "total": 2}
    get_all.assert_awaited_once_with("admin")


def test_list_letters(admin_client, monkeypatch):
    monkeypatch.setattr(
        letter_service,
        "list_all_letters",
        AsyncMock(return_value=[{"id": "l1", "title": "Demand Letters: Refund", "user_email": "a@example.com"}]),
    )

    response = admin_client.get("/api/admin/letters")

    assert response.json()["data"]["total"] == 1


def test_list_commissions(admin_client, monkeypatch):
    monkeypatch.setattr(
        referral_service, "list_commissions", AsyncMock(return_value=[make_commission()])
    )

    response = admin_client.get("/api/admin/commissions")

    commissions = response.json()["data"]["commissions"]
    assert commissions[0]["commission_amount"] == 7.96
    assert commissions[0]["status"] == "pending"


def test_mark_commission_paid(admin_client, monkeypatch):
    update = AsyncMock(return_value=make_commission(status="paid"))
    monkeypatch.setattr(referral_service, "update_commission_status", update)

    response = admin_client.patch(f"/api/admin/commissions/{COMMISSION_ID}", json={"status": "paid"})

    assert response.status_code == 200
    assert response.json()["data"]["commission"]["status"] == "paid"
    update.assert_awaited_once_with(COMMISSION_ID, CommissionStatus.PAID)


def test_update_missing_commission(admin_client, monkeypatch):
    monkeypatch.setattr(
        referral_service,
        "update_commission_status",
        AsyncMock(side_effect=NotFoundError("Commission not found")),
    )

    response = admin_client.patch(f"/api/admin/commissions/{uuid.uuid4()}", json={"status": "paid"})

    assert response.status_code == 404
    assert response.json()["message"] == "Commission not found"


def test_invalid_commission_status(admin_client):
    response = admin_client.patch(f"/api/admin/commissions/{COMMISSION_ID}", json={"status": "refunded"})
    assert response.status_code == 400


def test_malformed_commission_id_is_rejected(admin_client, monkeypatch):
    update = AsyncMock()
    monkeypatch.setattr(referral_service, "update_commission_status", update)

    response = admin_client.patch("/api/admin/commissions/not-a-uuid", json={"status": "paid"})

    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"
    update.assert_not_awaited()
