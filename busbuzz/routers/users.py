# File: busbuzz/routers/users.py
from typing import List

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from busbuzz.core.ratelimit import EXPORT_LIMIT, IMPORT_LIMIT, limiter
from busbuzz.core.security import Principal, require_role
from busbuzz.db.session import get_db
from busbuzz.schemas.user import ImportResult, UserCreate, UserOut, UserPatch, UsersImportIn
from busbuzz.services.directory import Directory

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserOut], dependencies=[Depends(require_role("admin"))])
def list_users(db: Session = Depends(get_db)):
    return Directory(db).get_users()


@router.post("", response_model=UserOut, status_code=201, dependencies=[Depends(require_role("admin"))])
def create_user(body: UserCreate, db: Session = Depends(get_db)):
    return Directory(db).create_user(body)


@router.post("/import", response_model=ImportResult, status_code=201,
             dependencies=[Depends(require_role("admin"))])
@limiter.limit(IMPORT_LIMIT)
def import_users(request: Request, body: UsersImportIn, db: Session = Depends(get_db)):
    return Directory(db).import_users(body.users)


@router.get("/export", dependencies=[Depends(require_role("admin"))])
@limiter.limit(EXPORT_LIMIT)
def export_users(request: Request, db: Session = Depends(get_db)):
    return Response(
        content=Directory(db).export_users_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="users.csv"'},
    )


@router.get("/{user_id}", response_model=UserOut, dependencies=[Depends(require_role("admin"))])
def get_user(user_id: int, db: Session = Depends(get_db)):
    return Directory(db).get_user(user_id)


@router.patch("/{user_id}", response_model=UserOut)
def update_user(user_id: int, body: UserPatch, db: Session = Depends(get_db),
                me: Principal = Depends(require_role("admin"))):
    return Directory(db).update_user(user_id, body, me)


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: int, db: Session = Depends(get_db),
                me: Principal = Depends(require_role("admin"))):
    Directory(db).delete_user(user_id, me)
    return Response(status_code=204)
