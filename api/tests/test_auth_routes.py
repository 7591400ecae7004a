from sqlalchemy import select

from vidvault.auth.crypto import create_access_token
from vidvault.models import User


def fetch_user(client, email):
    async def _fetch():
        async with client.database.session() as db:
            return (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    return client.portal.call(_fetch)


def test_signup_returns_201_envelope(client):
    response = client.post(
        "/api/auth/signup",
        json={
            "email": "jane@example.com",
            "password": "correct-horse",
            "firstName": "Jane",
            "lastName": "Doe",
            "roles": ["ADMIN"],
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["statusCode"] == 201
    assert body["message"] == "User created successfully"
    assert body["data"]["roles"] == ["CLIENT"]
    assert body["data"]["firstName"] == "Jane"


def test_signup_duplicate_email_is_409(client, signup):
    signup()

    response = client.post(
        "/api/auth/signup",
        json={"email": "jane@example.com", "password": "another-one", "firstName": "J", "lastName": "D"},
    )

    assert response.status_code == 409
    assert response.json() == {"statusCode": 409, "message": "User already exists"}


def test_signup_validation_error_is_400_envelope(client):
    response = client.post("/api/auth/signup", json={"email": "not-an-email", "password": "x"})

    assert response.status_code == 400
    body = response.json()
    assert body["statusCode"] == 400
    assert body["message"] == "Validation failed"
    assert isinstance(body["data"], list)


def test_signin(client, signup):
    signup()

    response = client.post("/api/auth/signin", json={"email": "jane@example.com", "password": "correct-horse"})
    assert response.status_code == 200
    assert response.json()["data"]["token"]

    response = client.post("/api/auth/signin", json={"email": "jane@example.com", "password": "wrong-horse"})
    assert response.status_code == 401
    assert response.json()["statusCode"] == 401

    response = client.post("/api/auth/signin", json={"email": "ghost@example.com", "password": "correct-horse"})
    assert response.status_code == 401


def test_me_requires_authentication(client):
    assert client.get("/api/auth/me").status_code == 401
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid authentication token"


def test_me_returns_profile(client, auth_headers):
    response = client.get("/api/auth/me", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "jane@example.com"
    assert data["roles"] == ["CLIENT"]


def test_token_for_deleted_account_is_rejected(client):
    headers = {"Authorization": f"Bearer {create_access_token('ghost@example.com')}"}
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_password_reset_flow(client, signup, email_sender):
    signup()

    response = client.post("/api/auth/request-password-reset", json={"email": "jane@example.com"})
    assert response.status_code == 200
    assert response.json() == {"statusCode": 200, "message": "OTP sent to your email"}
    assert len(email_sender.sent) == 1

    otp = fetch_user(client, "jane@example.com").otp
    assert otp in email_sender.sent[0]["body"]

    response = client.post(
        "/api/auth/reset-password",
        json={"email": "jane@example.com", "otp": "WRONG1", "newPassword": "brand-new-password"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired OTP"

    response = client.post(
        "/api/auth/reset-password",
        json={"email": "jane@example.com", "otp": otp, "newPassword": "brand-new-password"},
    )
    assert response.status_code == 200

    response = client.post("/api/auth/signin", json={"email": "jane@example.com", "password": "brand-new-password"})
    assert response.status_code == 200

    # the OTP is single-use
    response = client.post(
        "/api/auth/reset-password",
        json={"email": "jane@example.com", "otp": otp, "newPassword": "third-password"},
    )
    assert response.status_code == 400


def test_password_reset_unknown_email_is_404(client, email_sender):
    response = client.post("/api/auth/request-password-reset", json={"email": "ghost@example.com"})

    assert response.status_code == 404
    assert email_sender.sent == []


def test_delete_user(client, signup, auth_headers):
    victim = signup(email="victim@example.com")
    victim_id = client.post(
        "/api/auth/signin", json={"email": "victim@example.com", "password": "correct-horse"}
    ).json()["data"]["id"]
    assert victim["email"] == "victim@example.com"

    assert client.delete(f"/api/auth/delete/{victim_id}").status_code == 401

    response = client.delete(f"/api/auth/delete/{victim_id}", headers=auth_headers)
    assert response.status_code == 200
    assert fetch_user(client, "victim@example.com") is None

    response = client.delete(f"/api/auth/delete/{victim_id}", headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"statusCode": 404, "message": "User not found"}


def test_list_users_and_count_by_month(client, signup):
    signup(email="a@example.com")
    signup(email="b@example.com")

    response = client.get("/api/auth/users", params={"page": 1, "limit": 1})
    assert response.status_code == 200
    page = response.json()["data"]
    assert page["total"] == 2
    assert page["totalPages"] == 2
    assert len(page["data"]) == 1

    year = fetch_user(client, "a@example.com").created_at.year
    response = client.get(f"/api/auth/user/count-by-month/{year}")
    assert response.status_code == 200
    counts = response.json()["data"]
    assert len(counts) == 12
    assert sum(counts) == 2


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_reset_password_with_non_ascii_otp_is_400(client, signup):
    signup()
    client.post("/api/auth/request-password-reset", json={"email": "jane@example.com"})

    response = client.post(
        "/api/auth/reset-password",
        json={"email": "jane@example.com", "otp": "ÄBCDEF", "newPassword": "brand-new-password"},
    )

    assert response.status_code == 400
    assert response.json() == {"statusCode": 400, "message": "Invalid or expired OTP"}
