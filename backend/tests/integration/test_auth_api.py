"""End-to-end tests of the HTTP surface: registration, login, issuance and rotation."""

from __future__ import annotations

import pytest

from tests.conftest import PASSWORD

API = "/api/v1"
OTHER_IP = {"REMOTE_ADDR": "10.9.8.7"}


def _register(client, email="api@example.com", password=PASSWORD):
    return client.post(
        f"{API}/accounts",
        json={"email": email, "password": password, "first_name": "Ada"},
    )


def _login(client, email="api@example.com", password=PASSWORD, **kwargs):
    return client.post(f"{API}/auth/login", json={"email": email, "password": password}, **kwargs)


def _cookie(client, name):
    cookie = client.get_cookie(name)
    return cookie.value if cookie is not None else None


@pytest.fixture
def account_id(client):
    resp = _register(client)
    assert resp.status_code == 201
    return resp.get_json()["data"]["id"]


class TestHealth:
    def test_health_reports_backend(self, client):
        resp = client.get(f"{API}/health")
        body = resp.get_json()
        assert resp.status_code == 200
        assert body["status"] == "ok"
        assert body["db"] == "ok"
        assert body["credential_backend"] == "sql"
        assert resp.headers["X-Request-ID"]


class TestRegistration:
    def test_register_hides_secrets(self, client):
        resp = _register(client, email="Reg@Example.com")
        data = resp.get_json()["data"]
        assert resp.status_code == 201
        assert data["email"] == "reg@example.com"
        assert "password" not in data
        assert "password_hash" not in data

    def test_duplicate_email_is_conflict(self, client, account_id):
        resp = _register(client)
        assert resp.status_code == 409
        assert resp.mimetype == "application/problem+json"
        assert resp.get_json()["code"] == "conflict"

    def test_invalid_payload_is_unprocessable(self, client):
        resp = client.post(f"{API}/accounts", json={"email": "nope"})
        problem = resp.get_json()
        assert resp.status_code == 422
        assert problem["code"] == "validation_error"
        assert "email" in problem["details"]["errors"]
        assert "password" in problem["details"]["errors"]

    def test_short_password_is_bad_request(self, client):
        resp = _register(client, email="weak@example.com", password="short")
        assert resp.status_code == 400
        assert "at least 8" in resp.get_json()["detail"]


class TestLogin:
    def test_login_sets_httponly_strict_cookies(self, client, account_id):
        resp = _login(client)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["account_id"] == account_id

        set_cookies = resp.headers.getlist("Set-Cookie")
        assert len(set_cookies) == 2
        for header in set_cookies:
            assert "HttpOnly" in header
            assert "SameSite=Strict" in header
            assert "Path=/" in header
        assert _cookie(client, "refreshToken").startswith("127.0.0.1|")

    def test_token_values_never_in_body(self, client, account_id):
        body = _login(client).get_data(as_text=True)
        assert _cookie(client, "accessToken") not in body
        assert _cookie(client, "refreshToken") not in body

    def test_wrong_password_is_unauthorized(self, client, account_id):
        resp = _login(client, password="wrong-password")
        assert resp.status_code == 401
        assert resp.get_json()["detail"] == "invalid password"
        assert client.get_cookie("accessToken") is None

    def test_unknown_email_is_unauthorized(self, client):
        resp = _login(client, email="ghost@example.com")
        assert resp.status_code == 401
        assert resp.get_json()["detail"] == "user with this email does not exist"


class TestAccessToken:
    def test_cookie_grants_access(self, client, account_id):
        _login(client)
        resp = client.get(f"{API}/accounts/{account_id}")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["first_name"] == "Ada"

    def test_bearer_header_grants_access(self, client, account_id):
        _login(client)
        token = _cookie(client, "accessToken")
        client.delete_cookie("accessToken")
        resp = client.get(
            f"{API}/accounts/{account_id}", headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 200

    def test_missing_token_is_unauthorized(self, client, account_id):
        resp = client.get(f"{API}/accounts/{account_id}")
        assert resp.status_code == 401

    def test_tampered_token_is_unauthorized(self, client, account_id):
        _login(client)
        token = _cookie(client, "accessToken")
        resp = client.get(
            f"{API}/accounts/{account_id}", headers={"Authorization": f"Bearer {token}x"}
        )
        assert resp.status_code == 401

    def test_token_from_another_ip_is_unauthorized(self, client, account_id):
        _login(client)
        resp = client.get(f"{API}/accounts/{account_id}", environ_base=OTHER_IP)
        assert resp.status_code == 401


class TestProvide:
    def test_provide_issues_pair(self, client, account_id):
        resp = client.post(f"{API}/accounts/{account_id}/tokens")
        assert resp.status_code == 201
        assert _cookie(client, "refreshToken").startswith("127.0.0.1|")

    def test_provide_unknown_account(self, client):
        resp = client.post(f"{API}/accounts/999999/tokens")
        assert resp.status_code == 401

    @pytest.mark.parametrize("bad_id", ["abc", "0", "-1", "²"])
    def test_provide_invalid_id(self, client, bad_id):
        resp = client.post(f"{API}/accounts/{bad_id}/tokens")
        assert resp.status_code == 400
        assert resp.get_json()["detail"] == "provided ID is invalid"


class TestRefresh:
    def test_refresh_rotates_and_old_token_is_single_use(self, client, account_id):
        _login(client)
        first = _cookie(client, "refreshToken")

        resp = client.post(f"{API}/accounts/{account_id}/refresh")
        assert resp.status_code == 200
        second = _cookie(client, "refreshToken")
        assert second != first

        client.set_cookie("refreshToken", first)
        replay = client.post(f"{API}/accounts/{account_id}/refresh")
        assert replay.status_code == 401

        client.set_cookie("refreshToken", second)
        assert client.post(f"{API}/accounts/{account_id}/refresh").status_code == 200

    def test_refresh_from_another_ip_is_rejected(self, client, account_id):
        _login(client)
        original = _cookie(client, "refreshToken")

        resp = client.post(f"{API}/accounts/{account_id}/refresh", environ_base=OTHER_IP)
        assert resp.status_code == 401

        # The stored credential was not consumed
        client.set_cookie("refreshToken", original)
        assert client.post(f"{API}/accounts/{account_id}/refresh").status_code == 200

    def test_refresh_without_cookie(self, client, account_id):
        resp = client.post(f"{API}/accounts/{account_id}/refresh")
        assert resp.status_code == 401

    def test_refresh_without_prior_issuance(self, client, account_id):
        client.set_cookie("refreshToken", "127.0.0.1|c29tZS1yYW5kb20tYnl0ZXM=")
        resp = client.post(f"{API}/accounts/{account_id}/refresh")
        assert resp.status_code == 401

    def test_malformed_refresh_token(self, client, account_id):
        _login(client)
        client.set_cookie("refreshToken", "a|b|c")
        resp = client.post(f"{API}/accounts/{account_id}/refresh")
        assert resp.status_code == 401


class TestRouting:
    def test_unknown_route_is_problem_json(self, client):
        resp = client.get(f"{API}/nope")
        assert resp.status_code == 404
        assert resp.mimetype == "application/problem+json"
        assert resp.get_json()["request_id"]
