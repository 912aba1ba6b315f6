"""Tests for company and membership endpoints."""

import uuid

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.models.user import User


def _loose_user(db: Session, email: str) -> User:
    user = User(email=email, name="Loose", is_active=True)
    db.add(user)
    db.commit()
    return user


class TestCompanyEndpoints:
    """Tests for company CRUD over HTTP."""

    def test_get_my_company(self, client: TestClient, test_user: dict):
        response = client.get("/api/v1/companies/me", headers=test_user["headers"])
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Test User's Company"
        assert [m["email"] for m in data["members"]] == ["test@example.com"]
        assert data["members"][0]["role"] == "Owner"

    def test_requires_auth(self, client: TestClient):
        assert client.get("/api/v1/companies/me").status_code == 401

    def test_create_company(self, client: TestClient, test_user: dict):
        response = client.post(
            "/api/v1/companies/",
            json={"name": "Side Project", "settings": {"tier": "free"}},
            headers=test_user["headers"],
        )
        assert response.status_code == 201
        assert response.json()["settings"] == {"tier": "free"}

        duplicate = client.post("/api/v1/companies/", json={"name": "side project"}, headers=test_user["headers"])
        assert duplicate.status_code == 400
        assert duplicate.json()["code"] == "DUPLICATE_NAME"

    def test_update_my_company(self, client: TestClient, test_user: dict):
        response = client.put("/api/v1/companies/me", json={"name": "Renamed Inc"}, headers=test_user["headers"])
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed Inc"

    def test_other_tenant_company_is_hidden(self, client: TestClient, test_user: dict, make_user):
        _, other_headers = make_user("other@example.com", name="Other")
        other_id = client.get("/api/v1/companies/me", headers=other_headers).json()["id"]

        assert client.get(f"/api/v1/companies/{other_id}", headers=test_user["headers"]).status_code == 404
        response = client.put(f"/api/v1/companies/{other_id}", json={"name": "Mine now"}, headers=test_user["headers"])
        assert response.status_code == 403
        assert response.json()["code"] == "CROSS_TENANT_ACCESS_DENIED"
        assert client.delete(f"/api/v1/companies/{other_id}", headers=test_user["headers"]).status_code == 403

    def test_delete_own_company(self, client: TestClient, test_user: dict):
        company_id = client.get("/api/v1/companies/me", headers=test_user["headers"]).json()["id"]
        assert client.delete(f"/api/v1/companies/{company_id}", headers=test_user["headers"]).status_code == 204
        assert client.get("/api/v1/companies/me", headers=test_user["headers"]).status_code == 404


class TestMemberEndpoints:
    """Tests for membership management over HTTP."""

    def test_invite_and_list(self, client: TestClient, test_user: dict, db_session: Session):
        _loose_user(db_session, "joiner@example.com")
        response = client.post(
            "/api/v1/companies/me/members/invite",
            json={"email": "joiner@example.com", "role": "Admin"},
            headers=test_user["headers"],
        )
        assert response.status_code == 201
        assert response.json()["role"] == "Admin"

        members = client.get("/api/v1/companies/me/members", headers=test_user["headers"]).json()
        assert sorted(m["email"] for m in members) == ["joiner@example.com", "test@example.com"]

    def test_invite_unknown_user(self, client: TestClient, test_user: dict):
        response = client.post(
            "/api/v1/companies/me/members/invite",
            json={"email": "ghost@example.com", "role": "Member"},
            headers=test_user["headers"],
        )
        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"

    def test_invite_user_in_another_company(self, client: TestClient, test_user: dict, make_user):
        make_user("busy@example.com")
        response = client.post(
            "/api/v1/companies/me/members/invite",
            json={"email": "busy@example.com", "role": "Member"},
            headers=test_user["headers"],
        )
        assert response.status_code == 400
        assert response.json()["code"] == "ALREADY_IN_COMPANY"

    def test_invalid_role_rejected(self, client: TestClient, test_user: dict):
        response = client.post(
            "/api/v1/companies/me/members/invite",
            json={"email": "x@example.com", "role": "Root"},
            headers=test_user["headers"],
        )
        assert response.status_code == 422

    def test_update_and_remove_member(self, client: TestClient, test_user: dict, db_session: Session):
        _loose_user(db_session, "joiner@example.com")
        member_id = client.post(
            "/api/v1/companies/me/members/invite",
            json={"email": "joiner@example.com"},
            headers=test_user["headers"],
        ).json()["id"]

        response = client.put(
            f"/api/v1/companies/me/members/{member_id}", json={"role": "Admin"}, headers=test_user["headers"]
        )
        assert response.status_code == 200
        assert response.json()["role"] == "Admin"

        response = client.delete(f"/api/v1/companies/me/members/{member_id}", headers=test_user["headers"])
        assert response.status_code == 204
        members = client.get("/api/v1/companies/me/members", headers=test_user["headers"]).json()
        assert [m["email"] for m in members] == ["test@example.com"]

    def test_unknown_member(self, client: TestClient, test_user: dict):
        response = client.delete(f"/api/v1/companies/me/members/{uuid.uuid4()}", headers=test_user["headers"])
        assert response.status_code == 404
        assert response.json()["code"] == "MEMBER_NOT_FOUND"

    def test_member_role_cannot_manage(self, client: TestClient, test_user: dict, db_session: Session, auth_service):
        _loose_user(db_session, "plain@example.com")
        client.post(
            "/api/v1/companies/me/members/invite",
            json={"email": "plain@example.com", "role": "Member"},
            headers=test_user["headers"],
        )
        token = auth_service.jwt_service.create_access_token(
            db_session.query(User).filter(User.email == "plain@example.com").one().id, "plain@example.com"
        )
        headers = {"Authorization": f"Bearer {token}"}

        assert client.get("/api/v1/companies/me", headers=headers).status_code == 200
        response = client.put("/api/v1/companies/me", json={"name": "Coup"}, headers=headers)
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"
