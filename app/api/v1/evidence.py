from typing import Optional
import anyio
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from app.core.container import ServiceContainer, get_container
from app.core.errors import ValidationError
from app.schemas.incident import SignUploadRequest, SignUploadResponse, UploadResponse
from app.services.content_classifier import (
    ALLOWED_EXTENSIONS,
    FALLBACK_EXTENSION,
    classify,
    normalize_extension,
)

router = APIRouter(tags=['evidence'])


def _ensure_allowed(extension: str, allow_bin: bool) -> None:
    if extension not in ALLOWED_EXTENSIONS or (extension == FALLBACK_EXTENSION and not allow_bin):
        raise ValidationError(f'Unsupported file type: {extension}')


@router.post('/upload', response_model=UploadResponse)
async def upload_evidence(
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> UploadResponse:
    data = await request.body()
    if not data:
        raise ValidationError('No file uploaded')
    classified = classify(data, request.headers.get('content-type'))
    _ensure_allowed(classified.extension, container.config.allow_bin_evidence)
    store = container.evidence_store
    key = store.new_key(classified.extension)
    await anyio.to_thread.run_sync(store.put, key, data, classified.content_type)
    return UploadResponse(key=key)


@router.post('/sign-upload', response_model=SignUploadResponse)
def sign_upload(
    payload: Optional[SignUploadRequest] = None,
    container: ServiceContainer = Depends(get_container),
) -> SignUploadResponse:
    extension = normalize_extension(payload.ext if payload else None)
    _ensure_allowed(extension, container.config.allow_bin_evidence)
    store = container.evidence_store
    signed = store.sign_for_write(store.new_key(extension))
    return SignUploadResponse(key=signed.key, signed_upload_url=signed.url, token=signed.token)


@router.get('/evidence', status_code=status.HTTP_302_FOUND)
def evidence_redirect(
    key: Optional[str] = None,
    container: ServiceContainer = Depends(get_container),
) -> RedirectResponse:
    if not key or not key.strip():
        raise ValidationError('Missing key')
    url = container.evidence_store.sign_for_read(key)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)
