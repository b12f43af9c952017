"""Tests for registration, login and token handling."""
from unittest.mock import patch

from app.models.user import AccessToken, User, UserRole
from app.services.auth_service import verify_password


REGISTRATION = {
    "name": "Jane Doe",
    "email": "jane@example.com",
    "password": "secret123",
    "password_confirmation": "secret123",
}


def _register(client, **overrides):
    payload = dict(REGISTRATION)
    payload.update(overrides)
    return client.post("/api/v1/register", json=payload)


def _login(client, email="jane@example.com", password="secret123"):
    return client.post("/api/v1/login", json={"email": email, "password": password})


def test_register(client):
    """Test registering returns a bearer token."""
    response = _register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["status_code"] == 201
    assert body["message"] == "User created successfully"

    token = body["result"]["token"]
    token_id, _, secret = token.partition("|")
    assert token_id.isdigit()
    assert len(secret) == 40


def test_register_stores_hashed_password_and_token_digest(client, db_session):
    """Test neither the password nor the token secret is stored in clear."""
    token = _register(client).json()["result"]["token"]
    token_id, _, secret = token.partition("|")

    user = db_session.query(User).filter(User.email == "jane@example.com").one()
    access_token = db_session.get(AccessToken, int(token_id))

    assert user.role == UserRole.USER
    assert user.password != "secret123"
    assert verify_password("secret123", user.password)
    assert access_token.user_id == user.id
    assert access_token.token != secret
    assert len(access_token.token) == 64


def test_register_queues_welcome_email(client):
    """Test a welcome e-mail is queued for the new user."""
    with patch("app.api.auth.send_welcome_email.delay") as delay:
        _register(client)

    delay.assert_called_once()
    assert isinstance(delay.call_args.args[0], int)


def test_register_normalizes_email(client):
    """Test e-mail addresses are stored lower-cased."""
    _register(client, email="  Jane@Example.COM ")

    assert _login(client, email="jane@example.com").status_code == 200


def test_register_duplicate_email(client):
    """Test registering the same e-mail twice fails."""
    _register(client)

    response = _register(client, email="JANE@example.com")

    assert response.status_code == 409
    assert response.json() == {
        "status_code": 409,
        "message": "Email is already registered",
        "result": None,
    }


def test_register_password_mismatch(client):
    """Test the password confirmation must match."""
    response = _register(client, password_confirmation="different123")

    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "The given data was invalid."
    assert body["result"]["errors"]["password_confirmation"] == [
        "The password confirmation does not match."
    ]


def test_register_invalid_fields(client):
    """Test invalid e-mail and short password are both reported."""
    response = _register(
        client, email="not-an-email", password="short", password_confirmation="short"
    )

    assert response.status_code == 422
    errors = response.json()["result"]["errors"]
    assert errors["email"] == ["The email must be a valid email address."]
    assert "password" in errors


def test_login(client):
    """Test logging in returns a fresh token and the user."""
    register_token = _register(client).json()["result"]["token"]

    response = _login(client)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["result"]["token"] != register_token
    user = body["result"]["user"]
    assert user["email"] == "jane@example.com"
    assert user["name"] == "Jane Doe"
    assert user["role"] == "user"
    assert "password" not in user


def test_login_wrong_password(client):
    """Test a wrong password is rejected."""
    _register(client)

    response = _login(client, password="wrongpass")

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_login_unknown_email(client):
    """Test an unknown e-mail gets the same answer as a wrong password."""
    response = _login(client, email="nobody@example.com")

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_current_user(client):
    """Test the authenticated user endpoint, wrapped by the middleware."""
    token = _register(client).json()["result"]["token"]

    response = client.get("/api/v1/user", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    body = response.json()
    assert body["status_code"] == 200
    assert body["message"] == "Operation successful"
    assert body["result"]["email"] == "jane@example.com"
    assert body["result"]["role"] == "user"


def test_current_user_records_token_use(client, db_session):
    """Test authenticating stamps the token's last use."""
    token = _register(client).json()["result"]["token"]
    token_id = int(token.partition("|")[0])

    client.get("/api/v1/user", headers={"Authorization": f"Bearer {token}"})

    assert db_session.get(AccessToken, token_id).last_used_at is not None


def test_current_user_requires_token(client):
    """Test missing and malformed tokens are rejected."""
    response = client.get("/api/v1/user")
    assert response.status_code == 401
    assert response.json() == {
        "status_code": 401,
        "message": "Unauthenticated.",
        "result": None,
    }
    assert response.headers["www-authenticate"] == "Bearer"

    for bad in ("garbage", "abc|def", "1|", "999|deadbeef"):
        response = client.get("/api/v1/user", headers={"Authorization": f"Bearer {bad}"})
        assert response.status_code == 401


def test_token_with_wrong_secret_is_rejected(client):
    """Test a known token id with a forged secret is rejected."""
    token = _register(client).json()["result"]["token"]
    token_id = token.partition("|")[0]

    response = client.get(
        "/api/v1/user", headers={"Authorization": f"Bearer {token_id}|{'0' * 40}"}
    )

    assert response.status_code == 401


def test_logout_revokes_every_token(client):
    """Test logging out invalidates all of the user's tokens."""
    first = _register(client).json()["result"]["token"]
    second = _login(client).json()["result"]["token"]

    response = client.post("/api/v1/logout", headers={"Authorization": f"Bearer {first}"})

    assert response.status_code == 200
    assert response.json() == {
        "status_code": 200,
        "message": "Logged out successfully",
        "result": None,
    }
    for token in (first, second):
        response = client.get("/api/v1/user", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


def test_logout_requires_token(client):
    """Test logout without a token is rejected."""
    response = client.post("/api/v1/logout")

    assert response.status_code == 401
