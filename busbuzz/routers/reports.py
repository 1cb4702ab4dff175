# File: busbuzz/routers/reports.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from busbuzz.core.ratelimit import WRITE_LIMIT, limiter
from busbuzz.core.security import Principal, get_current_principal, require_role
from busbuzz.db.session import get_db
from busbuzz.schemas.report import (
    ConversationIn,
    ReportCreate,
    ReportDoc,
    ReportFieldsPatch,
    StatusUpdateIn,
)
from busbuzz.services.directory import Directory
from busbuzz.services.lifecycle import LifecycleEngine
from busbuzz.services.report_store import ReportStore

router = APIRouter(prefix="/reports", tags=["reports"])


def get_lifecycle(db: Session = Depends(get_db)) -> LifecycleEngine:
    return LifecycleEngine(ReportStore(db), Directory(db))


@router.get("", response_model=List[ReportDoc])
def list_reports(
    kind: Optional[Literal["Feedback", "Lost", "Found", "LostFound"]] = Query(default=None),
    status: Optional[str] = Query(default=None),
    route: Optional[str] = Query(default=None),
    order: Literal["desc", "asc"] = Query(default="desc"),
    principal: Principal = Depends(get_current_principal),
    engine: LifecycleEngine = Depends(get_lifecycle),
):
    return engine.list_reports(principal, kind=kind, status=status, route=route,
                               descending=order == "desc")


@router.post("", response_model=ReportDoc, status_code=201)
@limiter.limit(WRITE_LIMIT)
def create_report(
    request: Request,
    body: ReportCreate,
    principal: Principal = Depends(get_current_principal),
    engine: LifecycleEngine = Depends(get_lifecycle),
):
    return engine.create_report(body.kind, body.model_dump(exclude={"kind"}), principal)


@router.get("/{report_id}", response_model=ReportDoc)
def get_report(
    report_id: int,
    principal: Principal = Depends(get_current_principal),
    engine: LifecycleEngine = Depends(get_lifecycle),
):
    return engine.get_report(report_id, principal)


@router.patch("/{report_id}/status", response_model=ReportDoc)
@limiter.limit(WRITE_LIMIT)
def update_status(
    request: Request,
    report_id: int,
    body: StatusUpdateIn,
    principal: Principal = Depends(get_current_principal),
    engine: LifecycleEngine = Depends(get_lifecycle),
):
    return engine.update_status(report_id, principal, body.status, body.resolution)


@router.put("/{report_id}", response_model=ReportDoc)
@limiter.limit(WRITE_LIMIT)
def update_report(
    request: Request,
    report_id: int,
    body: ReportFieldsPatch,
    principal: Principal = Depends(require_role("admin")),
    engine: LifecycleEngine = Depends(get_lifecycle),
):
    return engine.update_fields(report_id, principal, body.model_dump(exclude_unset=True))


@router.post("/{report_id}/conversation", response_model=ReportDoc, status_code=201)
@limiter.limit(WRITE_LIMIT)
def add_conversation_entry(
    request: Request,
    report_id: int,
    body: ConversationIn,
    principal: Principal = Depends(get_current_principal),
    engine: LifecycleEngine = Depends(get_lifecycle),
):
    attachment = body.attachment.model_dump() if body.attachment else None
    return engine.append_conversation_entry(report_id, principal, body.message, attachment)


@router.delete("/{report_id}", status_code=204)
@limiter.limit(WRITE_LIMIT)
def delete_report(
    request: Request,
    report_id: int,
    principal: Principal = Depends(get_current_principal),
    engine: LifecycleEngine = Depends(get_lifecycle),
):
    engine.delete_report(report_id, principal)
    return Response(status_code=204)
