def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    data = res.get_json()
    assert data["status"] == "ok"
    assert data["ai_key_set"] is False
    assert "users" in data["tables"]


def test_requires_login(client):
    res = client.get("/employees/")
    assert res.status_code == 401
    assert res.get_json()["error"] == "Authentication required."


def test_login_logout(client, login_as):
    res = client.post("/auth/login", json={"username": "admin", "password": "wrong"})
    assert res.status_code == 401

    login_as()
    assert client.get("/auth/me").get_json()["role"] == "admin"

    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/me").status_code == 401


def test_admin_creates_users(admin_client):
    res = admin_client.post("/auth/users", json={
        "username": "ana", "email": "ana@example.com", "full_name": "Ana Souza",
        "password": "Senha1234", "role": "editor",
    })
    assert res.status_code == 201
    assert res.get_json()["must_change_password"] is True

    dup = admin_client.post("/auth/users", json={
        "username": "ana", "email": "other@example.com", "full_name": "Ana",
        "password": "Senha1234",
    })
    assert dup.status_code == 409

    weak = admin_client.post("/auth/users", json={
        "username": "bia", "email": "bia@example.com", "full_name": "Bia", "password": "short",
    })
    assert weak.status_code == 400

    bad_role = admin_client.post("/auth/users", json={
        "username": "caio", "email": "caio@example.com", "full_name": "Caio",
        "password": "Senha1234", "role": "owner",
    })
    assert bad_role.status_code == 400

    users = admin_client.get("/auth/users").get_json()
    assert {u["username"] for u in users} == {"admin", "ana"}


def test_admin_edits_user(admin_client, make_user):
    user = make_user("leo")
    res = admin_client.patch(f"/auth/users/{user.id}", json={"role": "editor", "department": "RH"})
    assert res.status_code == 200
    assert res.get_json()["role"] == "editor"
    assert res.get_json()["department"] == "RH"
    assert admin_client.patch("/auth/users/999", json={"role": "editor"}).status_code == 404


def test_viewer_cannot_write_or_manage_users(client, make_user, login_as):
    make_user("viewer1", role="viewer")
    login_as("viewer1", "Passw0rd1")

    assert client.get("/employees/").status_code == 200
    assert client.post("/employees/", json={"full_name": "X"}).status_code == 403
    assert client.get("/auth/users").status_code == 403


def test_change_password(client, make_user, login_as):
    make_user("rita", role="editor")
    login_as("rita", "Passw0rd1")

    mismatch = client.post("/auth/change-password", json={
        "current_password": "Passw0rd1", "new_password": "NovaSenha1", "confirm_password": "NovaSenha2",
    })
    assert mismatch.status_code == 400

    res = client.post("/auth/change-password", json={
        "current_password": "Passw0rd1", "new_password": "NovaSenha1", "confirm_password": "NovaSenha1",
    })
    assert res.status_code == 200

    client.post("/auth/logout")
    login_as("rita", "NovaSenha1")
