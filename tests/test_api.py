"""HTTP adapter tests using the Flask test client."""
from datetime import timedelta

import pytest

from accounts import AuthService, Role, RoleService, Services, TokenService

SECRET = "api-test-signing-secret-0123456789abcdef"


@pytest.fixture
def services(repo, hasher, clock):
    tokens = TokenService(SECRET, clock=clock)
    return Services(
        repository=repo,
        hasher=hasher,
        tokens=tokens,
        auth=AuthService(repo, hasher, tokens),
        roles=RoleService(repo),
    )


@pytest.fixture
def app(services):
    from api.app import create_app
    return create_app(config={'TESTING': True}, services=services)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client, make_user):
    """Seed a user with a role and return auth headers for it."""
    def _login(username, role=Role.USER):
        make_user(username, role, password="Secret123!")
        resp = client.post('/api/auth/login', json={"username": username, "password": "Secret123!"})
        assert resp.status_code == 200, resp.get_json()
        return {"Authorization": f"Bearer {resp.get_json()['token']}"}
    return _login


class TestHealth:
    def test_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "ok"}


class TestRegister:
    def test_created(self, client):
        resp = client.post('/api/auth/register', json={
            "username": "alice", "email": "alice@x.com", "password": "Secret123!",
        })
        assert resp.status_code == 201
        user = resp.get_json()["user"]
        assert user["username"] == "alice"
        assert user["role"] == "user"
        assert "password_hash" not in user

    def test_duplicate_is_409(self, client):
        body = {"username": "alice", "email": "alice@x.com", "password": "Secret123!"}
        client.post('/api/auth/register', json=body)
        resp = client.post('/api/auth/register', json={**body, "email": "other@x.com"})
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "username already exists"

    def test_short_password_is_400(self, client):
        resp = client.post('/api/auth/register', json={
            "username": "alice", "email": "alice@x.com", "password": "123",
        })
        assert resp.status_code == 400
        assert "at least 8 characters" in resp.get_json()["error"]

    def test_non_json_body(self, client):
        resp = client.post('/api/auth/register', data="username=alice")
        assert resp.status_code == 400

    def test_non_string_field(self, client):
        resp = client.post('/api/auth/register', json={
            "username": ["alice"], "email": "alice@x.com", "password": "Secret123!",
        })
        assert resp.status_code == 400
        assert "username" in resp.get_json()["error"]


class TestLogin:
    def test_success(self, client, make_user):
        make_user("alice", password="Secret123!")
        resp = client.post('/api/auth/login', json={"username": "alice", "password": "Secret123!"})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["token"]
        assert data["expires_in"] == 86400
        assert "password_hash" not in data["user"]

    def test_wrong_password_and_unknown_user_match(self, client, make_user):
        make_user("alice", password="Secret123!")
        wrong = client.post('/api/auth/login', json={"username": "alice", "password": "wrong"})
        ghost = client.post('/api/auth/login', json={"username": "ghost", "password": "anything"})
        assert wrong.status_code == ghost.status_code == 401
        assert wrong.get_json()["error"] == ghost.get_json()["error"] == "invalid credentials"

    def test_disabled_is_403(self, client, make_user):
        make_user("alice", password="Secret123!", is_active=False)
        resp = client.post('/api/auth/login', json={"username": "alice", "password": "Secret123!"})
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "account is disabled"


class TestTokenEndpoints:
    def test_profile(self, client, login):
        headers = login("alice")
        resp = client.get('/api/auth/profile', headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["username"] == "alice"

    def test_validate(self, client, login):
        headers = login("alice")
        resp = client.get('/api/auth/validate', headers=headers)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["valid"] is True
        assert data["claims"]["username"] == "alice"
        assert data["claims"]["exp"] - data["claims"]["iat"] == 86400

    def test_missing_header(self, client):
        resp = client.get('/api/auth/validate')
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Missing authorization token"

    def test_non_bearer_scheme(self, client, login):
        headers = login("alice")
        token = headers["Authorization"][len("Bearer "):]
        resp = client.get('/api/auth/validate', headers={"Authorization": f"Token {token}"})
        assert resp.status_code == 401

    def test_garbage_token(self, client):
        resp = client.get('/api/auth/validate', headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "invalid token"

    def test_expired_token(self, client, login, clock):
        headers = login("alice")
        clock.advance(hours=24, seconds=1)
        resp = client.get('/api/auth/validate', headers=headers)
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "token expired"

    def test_profile_of_disabled_user(self, client, login, repo):
        headers = login("alice")
        repo.delete_user(repo.get_user_by_username("alice").id)
        # Token itself still validates; loading the user does not
        assert client.get('/api/auth/validate', headers=headers).status_code == 200
        assert client.get('/api/auth/profile', headers=headers).status_code == 403


class TestAdminEndpoints:
    def test_admin_promotes_user(self, client, login, make_user, repo):
        headers = login("admin", Role.ADMIN)
        target = make_user("regularuser")
        resp = client.put(f'/api/admin/users/{target.id}/role', json={"role": "moderator"}, headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["role"] == "moderator"
        assert repo.get_user_by_id(target.id).role == Role.MODERATOR

    def test_invalid_role_is_400(self, client, login, make_user):
        headers = login("root", Role.SUPER_ADMIN)
        target = make_user("regularuser")
        resp = client.put(f'/api/admin/users/{target.id}/role', json={"role": "owner"}, headers=headers)
        assert resp.status_code == 400

    def test_missing_role_field(self, client, login, make_user):
        headers = login("root", Role.SUPER_ADMIN)
        target = make_user("regularuser")
        resp = client.put(f'/api/admin/users/{target.id}/role', json={}, headers=headers)
        assert resp.status_code == 400

    def test_unknown_target_is_404(self, client, login):
        headers = login("root", Role.SUPER_ADMIN)
        resp = client.put('/api/admin/users/999/role', json={"role": "user"}, headers=headers)
        assert resp.status_code == 404

    def test_permission_denied_is_403(self, client, login, make_user):
        headers = login("admin1", Role.ADMIN)
        other = make_user("admin2", Role.ADMIN)
        resp = client.put(f'/api/admin/users/{other.id}/role', json={"role": "user"}, headers=headers)
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "permission denied"

    def test_self_change_is_403(self, client, login, repo):
        headers = login("admin", Role.ADMIN)
        admin = repo.get_user_by_username("admin")
        resp = client.put(f'/api/admin/users/{admin.id}/role', json={"role": "moderator"}, headers=headers)
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "cannot modify your own role"

    def test_last_super_admin_is_409(self, client, login, repo):
        headers = login("root", Role.SUPER_ADMIN)
        root = repo.get_user_by_username("root")
        resp = client.put(f'/api/admin/users/{root.id}/role', json={"role": "admin"}, headers=headers)
        assert resp.status_code == 409

    def test_uses_current_role_not_token_time_role(self, client, login, make_user, repo):
        headers = login("admin", Role.ADMIN)
        admin = repo.get_user_by_username("admin")
        admin.role = Role.USER
        repo.update_user(admin)
        target = make_user("regularuser")
        resp = client.put(f'/api/admin/users/{target.id}/role', json={"role": "moderator"}, headers=headers)
        assert resp.status_code == 403

    def test_list_moderators(self, client, login, make_user):
        headers = login("admin", Role.ADMIN)
        make_user("mod1", Role.MODERATOR)
        resp = client.get('/api/admin/moderators', headers=headers)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["count"] == 1
        assert data["users"][0]["username"] == "mod1"

    def test_list_moderators_denied(self, client, login):
        headers = login("mod", Role.MODERATOR)
        assert client.get('/api/admin/moderators', headers=headers).status_code == 403

    def test_list_admins(self, client, login, make_user):
        headers = login("root", Role.SUPER_ADMIN)
        make_user("admin", Role.ADMIN)
        resp = client.get('/api/admin/admins', headers=headers)
        assert resp.status_code == 200
        assert {u["username"] for u in resp.get_json()["users"]} == {"root", "admin"}

    def test_list_admins_denied_for_admin(self, client, login):
        headers = login("admin", Role.ADMIN)
        assert client.get('/api/admin/admins', headers=headers).status_code == 403

    def test_requires_token(self, client):
        assert client.get('/api/admin/admins').status_code == 401


class TestAppFactory:
    def test_builds_services_from_settings(self):
        from api.app import create_app
        app = create_app(config={'TESTING': True})
        services = app.extensions["accounts"]
        assert services.tokens.lifetime == timedelta(hours=24)
        resp = app.test_client().post('/api/auth/register', json={
            "username": "alice", "email": "alice@x.com", "password": "Secret123!",
        })
        assert resp.status_code == 201
