# backend/app/auth/router.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import select
from ..deps import get_db
from ..shared.db import utcnow
from ..shared.logging import get_logger
from .models import User
from .schemas import LoginIn, TokenOut, UserOut
from .utils import create_token, current_user, verify_password

log = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = db.scalar(select(User).where(User.email == payload.email, User.is_active == True))
    if not user or not verify_password(payload.password, user.password_hash):
        log.info("login rejected for %s", payload.email)
        raise HTTPException(status_code=401, detail="invalid credentials")
    token = create_token(user.id)
    user.last_login_at = utcnow()
    db.commit()
    return {"access_token": token}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(current_user)):
    return user
