"""
Tests for login, token and API key authentication
"""
import pytest

from nectardesk_api.services.email_service import EmailService
from nectardesk_api.models import User

DEFAULT_PASSWORD = "password123"


@pytest.fixture
def organization(make_organization):
    return make_organization()


@pytest.fixture
def admin(make_user, organization):
    return make_user(organization, role="admin", email="admin@example.com")


@pytest.fixture
def sent_resets(monkeypatch):
    sent = []

    async def fake_send(self, recipient, token):
        sent.append((recipient, token))
        return True

    monkeypatch.setattr(EmailService, "send_password_reset_email", fake_send)
    return sent


class TestLogin:
    def test_login_returns_token_user_and_organization(self, client, admin, organization):
        response = client.post("/api/auth/login", json={"email": "Admin@Example.com ", "password": DEFAULT_PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["token"]
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "admin@example.com"
        assert body["organization"]["id"] == str(organization.id)

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["user"]["id"] == str(admin.id)

    def test_wrong_password(self, client, admin):
        response = client.post("/api/auth/login", json={"email": admin.email, "password": "not-the-password"})

        assert response.status_code == 401
        assert response.json()["error"] == "AUTHENTICATION_ERROR"

    def test_inactive_user_cannot_login(self, client, make_user, organization):
        user = make_user(organization, is_active=False)

        response = client.post("/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})
        assert response.status_code == 401


class TestTokens:
    def test_missing_credentials(self, client):
        response = client.get("/api/agents")

        assert response.status_code == 401
        assert response.json()["error"] == "AUTHENTICATION_ERROR"

    def test_invalid_token(self, client):
        response = client.get("/api/agents", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_token_of_deactivated_user_rejected(self, client, db, admin, headers_for):
        headers = headers_for(admin)
        admin.is_active = False
        db.commit()

        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_public_paths(self, client):
        assert client.get("/health").json()["status"] == "healthy"
        assert client.get("/api/version").json()["api_version"] == "v1"

    def test_change_password(self, client, admin, headers_for):
        headers = headers_for(admin)

        wrong = client.put("/api/auth/change-password", headers=headers,
                           json={"current_password": "nope", "new_password": "new-password-1"})
        assert wrong.status_code == 401

        ok = client.put("/api/auth/change-password", headers=headers,
                        json={"current_password": DEFAULT_PASSWORD, "new_password": "new-password-1"})
        assert ok.status_code == 200

        login = client.post("/api/auth/login", json={"email": admin.email, "password": "new-password-1"})
        assert login.status_code == 200


class TestPasswordReset:
    def test_unknown_email_gets_same_answer(self, client, admin, sent_resets):
        known = client.post("/api/auth/forgot-password", json={"email": admin.email})
        unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert [recipient for recipient, _ in sent_resets] == [admin.email]

    def test_reset_with_token(self, client, db, admin, sent_resets):
        client.post("/api/auth/forgot-password", json={"email": admin.email})
        _, token = sent_resets[0]

        response = client.post("/api/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"})
        assert response.status_code == 200

        db.expire_all()
        user = db.get(User, admin.id)
        assert user.password_reset_token is None

        login = client.post("/api/auth/login", json={"email": admin.email, "password": "brand-new-pass"})
        assert login.status_code == 200

        reused = client.post("/api/auth/reset-password", json={"token": token, "new_password": "another-pass"})
        assert reused.status_code == 400

    def test_invalid_token(self, client):
        response = client.post("/api/auth/reset-password", json={"token": "bogus", "new_password": "whatever-123"})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestApiKeys:
    def create_key(self, client, admin, organization, headers_for):
        response = client.post(
            f"/api/organizations/{organization.id}/api-keys",
            headers=headers_for(admin),
            json={"name": "Dialer integration"}
        )
        assert response.status_code == 201
        return response.json()

    def test_key_is_shown_once_and_masked_afterwards(self, client, admin, organization, headers_for):
        created = self.create_key(client, admin, organization, headers_for)

        assert created["key"].startswith(created["masked_key"][:4])
        assert created["key"].endswith(created["masked_key"][-4:])

        listed = client.get(f"/api/organizations/{organization.id}/api-keys", headers=headers_for(admin)).json()
        assert len(listed) == 1
        assert "key" not in listed[0]
        assert listed[0]["masked_key"] == created["masked_key"]

    def test_api_key_scopes_to_its_organization(
        self, client, admin, organization, headers_for, make_organization, make_agent
    ):
        own_agent = make_agent(organization)
        make_agent(make_organization())
        created = self.create_key(client, admin, organization, headers_for)
        headers = {"x-api-key": created["key"]}

        agents = client.get("/api/agents", headers=headers).json()
        assert [a["id"] for a in agents["data"]] == [str(own_agent.id)]

        transcript = client.post("/api/transcripts", headers=headers, json={
            "raw_transcript": "Agent: Thanks for calling.",
            "agent_id": str(own_agent.id)
        })
        assert transcript.status_code == 201
        assert transcript.json()["source"] == "api"
        assert transcript.json()["organization_id"] == str(organization.id)

    def test_revoked_key_rejected(self, client, admin, organization, headers_for):
        created = self.create_key(client, admin, organization, headers_for)

        revoke = client.delete(
            f"/api/organizations/{organization.id}/api-keys/{created['id']}", headers=headers_for(admin)
        )
        assert revoke.status_code == 200

        response = client.get("/api/agents", headers={"x-api-key": created["key"]})
        assert response.status_code == 401

    def test_unknown_key_rejected(self, client):
        response = client.get("/api/agents", headers={"x-api-key": "nd_live_unknown_secret"})
        assert response.status_code == 401

    def test_non_admin_cannot_create_keys(self, client, make_user, organization, headers_for):
        member = make_user(organization, role="user")

        response = client.post(
            f"/api/organizations/{organization.id}/api-keys",
            headers=headers_for(member),
            json={"name": "Nope"}
        )
        assert response.status_code == 403
