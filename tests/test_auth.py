from griffin.domain.models.user import User


def test_register_returns_user_without_password(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "Alice@Example.com", "password": "secret123"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["email"] == "alice@example.com"
    assert user["reviewLimit"] == 100
    assert user["usageStats"]["totalReviews"] == 0
    assert body["data"]["token"]
    assert "password" not in str(user).lower()


def test_stored_password_is_hashed(client, db):
    client.post("/api/auth/register", json={"username": "bob", "email": "bob@example.com", "password": "secret123"})
    user = db.query(User).filter(User.username == "bob").one()
    assert user.password_hash != "secret123"
    assert user.password_hash.startswith("$2")


def test_register_rejects_invalid_fields(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "a!", "email": "not-an-email", "password": "123"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "ValidationError"
    fields = {error["field"] for error in body["errors"]}
    assert fields == {"username", "email", "password"}


def test_register_duplicate_email_conflicts(client, register):
    register()
    response = client.post(
        "/api/auth/register",
        json={"username": "other", "email": "ALICE@example.com", "password": "secret123"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "ConflictError"


def test_register_duplicate_username_conflicts(client, register):
    register()
    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "someone@example.com", "password": "secret123"},
    )
    assert response.status_code == 409


def test_login_success(client, register):
    register()
    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["token"]
    assert data["user"]["username"] == "alice"
    assert data["user"]["lastLoginAt"] is not None


def test_wrong_password_and_unknown_email_look_the_same(client, register):
    register()
    wrong = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope-nope"})
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["message"] == unknown.json()["message"] == "Invalid email or password"
    assert wrong.json()["code"] == unknown.json()["code"] == "AuthError"


def test_repeated_wrong_passwords_give_the_same_error(client, register):
    register()
    messages = set()
    for _ in range(3):
        response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-one"})
        assert response.status_code == 401
        messages.add(response.json()["message"])
    assert messages == {"Invalid email or password"}


def test_password_over_bcrypt_limit_is_rejected_at_registration(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": "p" * 72 + "CORRECT"},
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "password"


def test_login_does_not_match_on_the_first_72_bytes_only(client, register):
    register(password="p" * 72)
    longer = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "p" * 72 + "WRONG"})
    assert longer.status_code == 401
    assert longer.json()["message"] == "Invalid email or password"

    exact = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "p" * 72})
    assert exact.status_code == 200


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_me_returns_current_user(client, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["user"]["username"] == "alice"


def test_logout_revokes_token(client, auth_headers):
    response = client.post("/api/auth/logout", headers=auth_headers)
    assert response.status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers).status_code == 401


def test_update_profile(client, auth_headers):
    response = client.put(
        "/api/auth/profile",
        headers=auth_headers,
        json={"profile": {"name": "Alice A.", "bio": "Writes code", "avatar": "https://img.example.com/a.png"}},
    )
    assert response.status_code == 200
    profile = response.json()["data"]["user"]["profile"]
    assert profile == {"name": "Alice A.", "avatar": "https://img.example.com/a.png", "bio": "Writes code"}


def test_update_profile_rejects_long_bio(client, auth_headers):
    response = client.put("/api/auth/profile", headers=auth_headers, json={"profile": {"bio": "x" * 201}})
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "profile.bio"


def test_change_password(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers,
        json={"currentPassword": "secret123", "newPassword": "newsecret", "confirmNewPassword": "newsecret"},
    )
    assert response.status_code == 200
    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "newsecret"})
    assert login.status_code == 200


def test_change_password_wrong_current(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers,
        json={"currentPassword": "bad-password", "newPassword": "newsecret", "confirmNewPassword": "newsecret"},
    )
    assert response.status_code == 401


def test_change_password_mismatch(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        headers=auth_headers,
        json={"currentPassword": "secret123", "newPassword": "newsecret", "confirmNewPassword": "different"},
    )
    assert response.status_code == 400


def test_verify_email(client, auth_headers):
    assert client.post("/api/auth/verify-email", headers=auth_headers).status_code == 200
    assert client.get("/api/auth/me", headers=auth_headers).json()["data"]["user"]["isVerified"] is True


def test_stats(client, auth_headers):
    response = client.get("/api/auth/stats", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["reviewLimit"] == 100
    assert data["canReview"] is True
    assert data["reviewsLeft"] == 100
    assert data["usageStats"]["totalReviews"] == 0


def test_password_reset_flow(client, register):
    register()
    forgot = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    assert forgot.status_code == 200
    token = forgot.json()["resetToken"]

    body = {"token": token, "newPassword": "brandnew1", "confirmNewPassword": "brandnew1"}
    assert client.post("/api/auth/reset-password", json=body).status_code == 200
    assert client.post("/api/auth/login", json={"email": "alice@example.com", "password": "brandnew1"}).status_code == 200

    # Single use
    assert client.post("/api/auth/reset-password", json=body).status_code == 401


def test_forgot_password_unknown_email_does_not_leak(client):
    response = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    assert response.status_code == 200
    assert "resetToken" not in response.json()


def test_deactivate_blocks_login(client, auth_headers):
    assert client.delete("/api/auth/deactivate", headers=auth_headers).status_code == 200
    login = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert login.status_code == 401
    assert login.json()["message"] == "Invalid email or password"
