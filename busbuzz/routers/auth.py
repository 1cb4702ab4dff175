# File: busbuzz/routers/auth.py

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from busbuzz.db.session import get_db
from busbuzz.core.errors import Forbidden
from busbuzz.core.ratelimit import AUTH_LIMIT, LOGIN_LIMIT, limiter
from busbuzz.core.security import Principal, get_current_principal
from busbuzz.schemas.auth import RegisterIn, LoginIn, TokenOut
from busbuzz.schemas.user import UserOut
from busbuzz.services import identity
from busbuzz.services.directory import Directory

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=UserOut, status_code=201)
@limiter.limit(AUTH_LIMIT)
def register(request: Request, body: RegisterIn, db: Session = Depends(get_db)):
    # admin accounts come from POST /users or an import, never self-service
    if body.role == "admin":
        raise Forbidden("Admin accounts can only be created by an admin")
    return identity.register(db, body)

@router.post("/login", response_model=TokenOut)
@limiter.limit(LOGIN_LIMIT)
def login(request: Request, body: LoginIn, db: Session = Depends(get_db)):
    return identity.login(db, body.email, body.password)

@router.get("/me", response_model=UserOut)
def me(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    return Directory(db).get_user(principal.user_id)
