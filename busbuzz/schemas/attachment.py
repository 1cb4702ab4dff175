from busbuzz.schemas.report import CamelModel


class AttachmentOut(CamelModel):
    id: str
    url: str
    sanitized_name: str
    mime_type: str
    size: int
