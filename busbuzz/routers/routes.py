# File: busbuzz/routers/routes.py
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from busbuzz.core.security import require_role
from busbuzz.db.session import get_db
from busbuzz.schemas.directory import RouteOut, RouteUpsert
from busbuzz.services.directory import Directory

router = APIRouter(prefix="/routes", tags=["routes"])


@router.get("", response_model=List[RouteOut])
def list_routes(db: Session = Depends(get_db)):
    return Directory(db).get_routes()


@router.put("/{route_name}", response_model=RouteOut, dependencies=[Depends(require_role("admin"))])
def upsert_route(route_name: str, body: RouteUpsert, db: Session = Depends(get_db)):
    return Directory(db).upsert_route(route_name, body)


@router.delete("/{route_name}", status_code=204, dependencies=[Depends(require_role("admin"))])
def delete_route(route_name: str, db: Session = Depends(get_db)):
    Directory(db).delete_route(route_name)
    return Response(status_code=204)
