# File: busbuzz/routers/attachments.py
from fastapi import APIRouter, Depends, File, Request, Response, UploadFile
from sqlalchemy.orm import Session

from busbuzz.core.ratelimit import WRITE_LIMIT, limiter
from busbuzz.core.security import Principal, get_current_principal
from busbuzz.db.session import get_db
from busbuzz.schemas.attachment import AttachmentOut
from busbuzz.services.attachments import AttachmentService

router = APIRouter(prefix="/attachments", tags=["attachments"])


def get_attachment_service(request: Request, db: Session = Depends(get_db)) -> AttachmentService:
    return AttachmentService(db, request.app.state.blobs, request.app.state.settings.max_upload_bytes)


@router.post("", response_model=AttachmentOut, status_code=201)
@limiter.limit(WRITE_LIMIT)
def upload_attachment(
    request: Request,
    file: UploadFile = File(...),
    principal: Principal = Depends(get_current_principal),
    service: AttachmentService = Depends(get_attachment_service),
):
    # one byte past the limit is enough to reject
    data = file.file.read(service.max_bytes + 1)
    stored = service.register_attachment(data, file.filename, file.content_type,
                                         uploaded_by_id=principal.user_id)
    return AttachmentOut(
        id=stored.id,
        url=stored.url,
        sanitized_name=stored.sanitized_name,
        mime_type=stored.mime_type,
        size=stored.size,
    )


@router.get("/{attachment_id}")
def fetch_attachment(attachment_id: str, service: AttachmentService = Depends(get_attachment_service)):
    content = service.fetch_attachment(attachment_id)
    return Response(
        content=content.data,
        media_type=content.mime_type,
        headers={
            "Content-Disposition": f'attachment; filename="{content.sanitized_name}"',
            "X-Content-Type-Options": "nosniff",
        },
    )
