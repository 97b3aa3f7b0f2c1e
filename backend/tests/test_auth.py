import datetime as dt

import jwt

from app.auth.models import UserRole
from app.auth.utils import hash_password
from app.shared.config import settings


def test_login_and_me(api, db, make_user):
    user = make_user("asha@designstudio.com", "Asha", UserRole.editor,
                     password_hash=hash_password("correct horse"))
    anon = api(None)
    r = anon.post("/api/auth/login", json={"email": "asha@designstudio.com", "password": "correct horse"})
    assert r.status_code == 200
    token = r.json()["access_token"]
    assert r.json()["token_type"] == "bearer"

    me = anon.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json() == {"id": user.id, "email": "asha@designstudio.com", "name": "Asha", "role": "editor"}

    db.refresh(user)
    assert user.last_login_at is not None


def test_login_rejects_bad_password(api, make_user):
    make_user("asha@designstudio.com", "Asha", UserRole.editor, password_hash=hash_password("right"))
    r = api(None).post("/api/auth/login", json={"email": "asha@designstudio.com", "password": "wrong"})
    assert r.status_code == 401


def test_expired_token(api, alice):
    past = dt.datetime.now(dt.timezone.utc) - dt.timedelta(hours=2)
    token = jwt.encode(
        {"sub": str(alice.id), "iat": past, "exp": past + dt.timedelta(minutes=5)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALG,
    )
    r = api(None).get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Token expired"


def test_garbage_token(api):
    r = api(None).get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_disabled_user(api, db, alice):
    alice.is_active = False
    db.commit()
    assert api(alice).get("/api/auth/me").status_code == 401
