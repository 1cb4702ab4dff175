import pytest

from busbuzz.core.errors import NotFound, PayloadTooLarge, ValidationError
from busbuzz.services.attachments import AttachmentService, sanitize_filename, sanitize_mime
from busbuzz.services.storage import make_object_key

from conftest import auth_headers, feedback_body


@pytest.mark.parametrize("raw, expected", [
    ("bus photo (1).png", "busphoto1.png"),
    ("../../etc/passwd", "....etcpasswd"),
    ("résumé.pdf", "rsum.pdf"),
    ("", "attachment"),
    (None, "attachment"),
    ("..", "attachment"),
    ("???", "attachment"),
])
def test_sanitize_filename(raw, expected):
    assert sanitize_filename(raw) == expected


def test_sanitize_filename_truncates():
    assert len(sanitize_filename("a" * 400 + ".txt")) == 255


def test_sanitize_mime():
    assert sanitize_mime("image/png") == "image/png"
    assert sanitize_mime("Text/Plain; charset=utf-8") == "text/plain"
    assert sanitize_mime("text/html\r\nX-Evil: 1") == "application/octet-stream"
    assert sanitize_mime(None) == "application/octet-stream"
    assert sanitize_mime("notamime") == "application/octet-stream"


def test_object_key_uses_extension():
    assert make_object_key("ab" + "0" * 30, "photo.JPG") == "ab/ab" + "0" * 30 + ".jpg"
    assert make_object_key("cd" + "0" * 30, "attachment").endswith(".bin")


def test_service_limits(session, blobs):
    service = AttachmentService(session, blobs, max_bytes=8)

    with pytest.raises(ValidationError):
        service.register_attachment(b"", "a.txt", "text/plain")
    with pytest.raises(PayloadTooLarge):
        service.register_attachment(b"123456789", "a.txt", "text/plain")

    stored = service.register_attachment(b"12345678", "a.txt", "text/plain", uploaded_by_id=1)
    assert stored.size == 8
    assert stored.url == f"/attachments/{stored.id}"
    assert service.fetch_attachment(stored.id).data == b"12345678"

    with pytest.raises(NotFound):
        service.fetch_attachment("../" + stored.id)
    with pytest.raises(NotFound):
        service.fetch_attachment("f" * 32)


def test_upload_and_fetch(client, student):
    response = client.post(
        "/attachments",
        files={"file": ("bus photo (1).png", b"\x89PNG-bytes", "image/png")},
        headers=auth_headers(student),
    )
    assert response.status_code == 201
    data = response.json()
    assert data["sanitizedName"] == "busphoto1.png"
    assert data["mimeType"] == "image/png"
    assert data["size"] == 10
    assert data["url"] == f"/attachments/{data['id']}"

    fetched = client.get(data["url"])
    assert fetched.status_code == 200
    assert fetched.content == b"\x89PNG-bytes"
    assert fetched.headers["content-type"] == "image/png"
    assert fetched.headers["x-content-type-options"] == "nosniff"
    assert 'filename="busphoto1.png"' in fetched.headers["content-disposition"]


def test_uploaded_attachment_can_be_linked_to_a_report(client, student):
    headers = auth_headers(student)
    uploaded = client.post(
        "/attachments", files={"file": ("ticket.jpg", b"jpeg", "image/jpeg")}, headers=headers
    ).json()

    body = feedback_body(attachments=[{"url": uploaded["url"], "name": uploaded["sanitizedName"], "id": uploaded["id"]}])
    report = client.post("/reports", json=body, headers=headers).json()

    assert report["attachments"][0]["id"] == uploaded["id"]
    assert client.get(report["attachments"][0]["url"]).content == b"jpeg"


def test_upload_requires_authentication(client):
    response = client.post("/attachments", files={"file": ("a.txt", b"hello", "text/plain")})
    assert response.status_code == 401


def test_upload_too_large(client, student):
    client.app.state.settings = client.app.state.settings.model_copy(update={"max_upload_bytes": 4})
    response = client.post(
        "/attachments", files={"file": ("a.txt", b"hello", "text/plain")}, headers=auth_headers(student)
    )
    assert response.status_code == 413
    assert response.json()["kind"] == "PayloadTooLarge"


def test_empty_upload(client, student):
    response = client.post(
        "/attachments", files={"file": ("a.txt", b"", "text/plain")}, headers=auth_headers(student)
    )
    assert response.status_code == 400


def test_fetch_unknown_or_malformed_id(client):
    assert client.get("/attachments/" + "0" * 32).status_code == 404
    assert client.get("/attachments/not-an-id").status_code == 404
