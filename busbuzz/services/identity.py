# File: busbuzz/services/identity.py
"""Account creation and credential checks."""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from busbuzz.core.config import settings
from busbuzz.core.errors import DuplicateEmail, InvalidCredentials
from busbuzz.core.security import hash_password, make_token, verify_password
from busbuzz.models.user import User, UserRole
from busbuzz.schemas.user import UserOut

logger = logging.getLogger(__name__)

# verified against when the email is unknown so both failure paths cost one bcrypt check
_DUMMY_HASH = hash_password("not-a-real-password")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def create_user(
    db: Session,
    *,
    name: str,
    email: str,
    password: str,
    role: str = UserRole.student.value,
    roll_number_or_staff_id: Optional[str] = None,
    assigned_bus_route_no: Optional[str] = None,
    boarding_point: Optional[str] = None,
) -> User:
    email = normalize_email(email)
    if find_by_email(db, email):
        raise DuplicateEmail()

    user = User(
        name=name.strip(),
        email=email,
        hashed_password=hash_password(password),
        role=UserRole(role or UserRole.student.value),
        roll_number_or_staff_id=roll_number_or_staff_id,
        assigned_bus_route_no=assigned_bus_route_no,
        boarding_point=boarding_point,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with another insert of the same email
        db.rollback()
        raise DuplicateEmail()
    db.refresh(user)
    logger.info("Created user %s with role %s", user.id, user.role.value)
    return user


def register(db: Session, body) -> User:
    return create_user(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        role=body.role or UserRole.student.value,
        roll_number_or_staff_id=body.roll_number_or_staff_id,
        assigned_bus_route_no=body.assigned_bus_route_no,
        boarding_point=body.boarding_point,
    )


def login(db: Session, email: str, password: str) -> dict:
    user = find_by_email(db, email)
    if not user:
        verify_password(password, _DUMMY_HASH)
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentials()
    return {
        "token": make_token(user.id, user.role.value),
        "token_type": "bearer",
        "expires_in": settings.access_token_ttl_seconds,
        "user": UserOut.model_validate(user),
    }
