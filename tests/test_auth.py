from datetime import datetime, timedelta

from conftest import API, PASSWORD, auth_headers
from skillportal.models import PendingUser, User


def register(client, email="new@example.com", name="New Student", password="hunter22"):
    return client.post(f"{API}/auth/register", json={"name": name, "email": email, "password": password})


def pending_for(db, email):
    db.expire_all()
    return db.query(PendingUser).filter(PendingUser.email == email).one()


def test_register_then_verify_creates_student(client, db):
    response = register(client)
    assert response.status_code == 200
    assert response.json()["success"] is True

    code = pending_for(db, "new@example.com").otp_code
    assert len(code) == 6 and code[0] != "0"

    response = client.post(f"{API}/auth/verify-otp", json={"email": "new@example.com", "otp": code})
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "new@example.com"
    assert body["role"] == "student"

    db.expire_all()
    assert db.query(PendingUser).count() == 0
    assert db.query(User).filter(User.email == "new@example.com").count() == 1


def test_register_twice_refreshes_pending_row(client, db):
    register(client, name="First")
    register(client, name="Second")

    db.expire_all()
    rows = db.query(PendingUser).filter(PendingUser.email == "new@example.com").all()
    assert len(rows) == 1
    assert rows[0].name == "Second"


def test_register_existing_user_conflicts(client, student):
    response = register(client, email=student.email)
    assert response.status_code == 409
    assert response.json()["detail"] == "User already exists"


def test_verify_with_wrong_code(client, db):
    register(client)
    # generated codes never start with 0
    response = client.post(f"{API}/auth/verify-otp", json={"email": "new@example.com", "otp": "000000"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid OTP"


def test_verify_expired_code(client, db):
    register(client)
    pending = pending_for(db, "new@example.com")
    pending.otp_expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.commit()

    response = client.post(
        f"{API}/auth/verify-otp",
        json={"email": "new@example.com", "otp": pending.otp_code}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "OTP has expired, request a new one"


def test_verify_without_registration(client):
    response = client.post(f"{API}/auth/verify-otp", json={"email": "ghost@example.com", "otp": "123456"})
    assert response.status_code == 404


def test_resend_while_code_is_valid(client):
    register(client)
    response = client.post(f"{API}/auth/resend-otp", json={"email": "new@example.com"})
    assert response.status_code == 429
    assert "wait" in response.json()["detail"]


def test_resend_after_expiry_issues_new_code(client, db):
    register(client)
    pending = pending_for(db, "new@example.com")
    pending.otp_expires_at = datetime.utcnow() - timedelta(seconds=1)
    db.commit()

    response = client.post(f"{API}/auth/resend-otp", json={"email": "new@example.com"})
    assert response.status_code == 200

    refreshed = pending_for(db, "new@example.com")
    assert refreshed.otp_expires_at > datetime.utcnow()
    assert refreshed.otp_expires_at <= datetime.utcnow() + timedelta(minutes=1)


def test_login_and_me(client, student):
    response = client.post(
        f"{API}/auth/login",
        data={"username": student.email, "password": PASSWORD}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == student.id
    assert body["user"]["last_login_at"] is not None

    response = client.get(
        f"{API}/auth/me",
        headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert response.status_code == 200
    assert response.json()["email"] == student.email


def test_login_with_wrong_password(client, student):
    response = client.post(
        f"{API}/auth/login",
        data={"username": student.email, "password": "wrong-password"}
    )
    assert response.status_code == 401


def test_protected_route_requires_token(client):
    assert client.get(f"{API}/auth/me").status_code == 401
    assert client.get(f"{API}/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_inactive_user_is_rejected(client, db, student):
    student.is_active = False
    db.commit()
    response = client.get(f"{API}/auth/me", headers=auth_headers(student))
    assert response.status_code == 403
