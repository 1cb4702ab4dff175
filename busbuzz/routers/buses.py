# File: busbuzz/routers/buses.py
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from busbuzz.core.security import require_role
from busbuzz.db.session import get_db
from busbuzz.schemas.directory import BusOut, BusUpsert
from busbuzz.services.directory import Directory

router = APIRouter(prefix="/buses", tags=["buses"])


@router.get("", response_model=List[BusOut])
def list_buses(db: Session = Depends(get_db)):
    return Directory(db).get_buses()


@router.put("/{bus_no}", response_model=BusOut, dependencies=[Depends(require_role("admin"))])
def upsert_bus(bus_no: str, body: BusUpsert, db: Session = Depends(get_db)):
    return Directory(db).upsert_bus(bus_no, body)


@router.delete("/{bus_no}", status_code=204, dependencies=[Depends(require_role("admin"))])
def delete_bus(bus_no: str, db: Session = Depends(get_db)):
    Directory(db).delete_bus(bus_no)
    return Response(status_code=204)
