# Overview: Pytest coverage for the stand-in REST API routes and its Flask CLI commands.

import pytest

from tenant_console.cli import impersonation_group, settings_group, users_group


@pytest.fixture
def client(backend_app):
    return backend_app.test_client()


def login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.get_json()


def bearer(session, tenant_id=None):
    headers = {"Authorization": f"Bearer {session['accessToken']}"}
    if tenant_id:
        headers["X-Tenant-ID"] = tenant_id
    return headers


class TestAuthRoutes:
    def test_login_returns_user_and_tokens(self, client, password):
        data = login(client, "admin@acme.test", password)

        assert data["user"]["tenantId"] == "tenant-acme"
        assert data["accessToken"] and data["refreshToken"]
        assert "password_hash" not in data["user"]

    @pytest.mark.parametrize("payload,status", [
        ({"email": "admin@acme.test"}, 400),
        ({"email": "admin@acme.test", "password": "nope"}, 401),
        ({"email": "ghost@acme.test", "password": "Password123!"}, 401),
    ])
    def test_login_failures(self, client, payload, status):
        assert client.post("/api/auth/login", json=payload).status_code == status

    def test_logout_revokes_access_token(self, client, password):
        session = login(client, "admin@acme.test", password)

        assert client.post("/api/auth/logout", headers=bearer(session)).status_code == 204
        assert client.get("/api/auth/me", headers=bearer(session)).status_code == 401

    def test_refresh_issues_working_token(self, client, password):
        session = login(client, "admin@acme.test", password)

        response = client.post("/api/auth/refresh", json={"refreshToken": session["refreshToken"]})
        fresh = {"accessToken": response.get_json()["accessToken"]}

        assert client.get("/api/auth/me", headers=bearer(fresh)).get_json()["email"] == "admin@acme.test"
        assert client.post("/api/auth/refresh", json={"refreshToken": "bogus"}).status_code == 401

    def test_impersonation_token_is_single_use(self, client, backend_state):
        token = backend_state.issue_impersonation_token("admin@beta.test", 300)

        first = client.post("/api/auth/impersonate", json={"token": token})
        second = client.post("/api/auth/impersonate", json={"token": token})

        assert first.status_code == 200
        assert first.get_json()["user"]["tenantId"] == "tenant-beta"
        assert second.status_code == 401

    def test_impersonate_requires_token(self, client):
        assert client.post("/api/auth/impersonate", json={}).status_code == 400


class TestSettingsRoutes:
    def test_settings_are_tenant_scoped(self, client, password):
        acme = login(client, "admin@acme.test", password)
        beta = login(client, "admin@beta.test", password)

        acme_keys = [r["key"] for r in client.get("/api/settings", headers=bearer(acme)).get_json()]
        beta_rows = client.get("/api/settings", headers=bearer(beta)).get_json()

        assert acme_keys == ["clients.types", "finance.currency"]
        assert beta_rows == []

    def test_category_filter(self, client, password):
        acme = login(client, "admin@acme.test", password)
        rows = client.get("/api/settings?category=clients", headers=bearer(acme)).get_json()
        assert [r["key"] for r in rows] == ["clients.types"]

    def test_foreign_tenant_header_is_denied(self, client, password):
        acme = login(client, "admin@acme.test", password)
        response = client.get("/api/settings", headers=bearer(acme, tenant_id="tenant-beta"))
        assert response.status_code == 403

    def test_super_admin_without_tenant_is_denied(self, client, password):
        admin = login(client, "superadmin@console.local", password)
        assert client.get("/api/settings", headers=bearer(admin)).status_code == 403

    def test_update_replaces_value_wholesale(self, client, password):
        acme = login(client, "admin@acme.test", password)

        response = client.patch(
            "/api/settings/finance.currency", json={"value": {"symbol": "£"}}, headers=bearer(acme),
        )

        assert response.status_code == 200
        assert response.get_json()["value"] == {"symbol": "£"}

    def test_create_validation_and_delete(self, client, password):
        acme = login(client, "admin@acme.test", password)
        headers = bearer(acme)

        assert client.post("/api/settings", json={"key": "units.weight"}, headers=headers).status_code == 400
        created = client.post(
            "/api/settings", json={"key": "units.weight", "category": "units", "value": ["kg"]}, headers=headers,
        )
        assert created.status_code == 201
        assert client.delete("/api/settings/units.weight", headers=headers).status_code == 204
        assert client.delete("/api/settings/units.weight", headers=headers).status_code == 404


class TestCommands:
    def test_issue_impersonation_token(self, backend_app, backend_state):
        runner = backend_app.test_cli_runner()

        result = runner.invoke(impersonation_group, ["issue", "admin@beta.test", "--ttl", "60"])

        assert result.exit_code == 0
        token, link = result.output.strip().splitlines()
        assert link == f"/impersonate?token={token}"
        assert token in backend_state.impersonation_tokens

    def test_issue_for_unknown_user_fails(self, backend_app):
        result = backend_app.test_cli_runner().invoke(impersonation_group, ["issue", "ghost@x.test"])
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_list_and_create_users(self, backend_app, backend_state):
        runner = backend_app.test_cli_runner()

        created = runner.invoke(
            users_group, ["create", "--email", "ops@gamma.test", "--tenant", "tenant-gamma"],
            input="Secret123!\nSecret123!\n",
        )
        listing = runner.invoke(users_group, ["list"])

        assert created.exit_code == 0
        assert backend_state.authenticate("ops@gamma.test", "Secret123!") is not None
        assert "ops@gamma.test" in listing.output

    def test_init_settings(self, backend_app, backend_state):
        result = backend_app.test_cli_runner().invoke(settings_group, ["init", "tenant-beta"])

        assert result.exit_code == 0
        assert set(backend_state.tenant_settings("tenant-beta")) >= {"finance.currency", "billing.invoice_numbering"}
