import json
from typing import Optional
from urllib.parse import unquote

import httpx

SUPABASE_URL = "https://project.supabase.test"
SERVICE_ROLE = "service-role-test"
ADMIN_TOKEN = "admin-secret"
SITE_PASSWORD = "open-sesame"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PDF_BYTES = b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n" + b"0" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32


class FakeStorage:
    """Answers the storage endpoints the evidence store calls."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.failures: dict[str, tuple[int, str]] = {}
        self.sign_payload: Optional[dict] = None
        self.upload_sign_payload: Optional[dict] = None

    def fail(self, kind: str, status: int = 500, text: str = '{"error":"boom"}') -> None:
        self.failures[kind] = (status, text)

    def calls(self, kind: str) -> list[httpx.Request]:
        return [request for request in self.requests if self._kind(request) == kind]

    @staticmethod
    def _kind(request: httpx.Request) -> str:
        path = request.url.path
        if path.startswith("/storage/v1/object/upload/sign/"):
            return "upload_sign"
        if path.startswith("/storage/v1/object/sign/"):
            return "sign"
        if path.startswith("/storage/v1/object/"):
            return "upload"
        return "other"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        kind = self._kind(request)
        if kind in self.failures:
            status, text = self.failures[kind]
            return httpx.Response(status, text=text)
        key = unquote(request.url.path.rsplit("/", 1)[-1])
        if kind == "upload_sign":
            payload = self.upload_sign_payload or {
                "url": f"/object/upload/sign/evidence/{key}?token=upload-token",
                "token": "upload-token",
            }
            return httpx.Response(200, json=payload)
        if kind == "sign":
            payload = self.sign_payload or {"signedURL": f"/object/sign/evidence/{key}?token=read-token"}
            return httpx.Response(200, json=payload)
        if kind == "upload":
            return httpx.Response(200, json={"Key": f"evidence/{key}"})
        return httpx.Response(404, text="not found")


def report_body(**overrides) -> dict:
    body = {
        "incident_date": "2024-01-01",
        "location": "Lagos",
        "reporting_country": "Nigeria",
        "details": "Armed men attacked the market at dawn.",
    }
    body.update(overrides)
    return {key: value for key, value in body.items() if value is not None}


def json_body(request: httpx.Request):
    return json.loads(request.content.decode("utf-8"))
