"""Private evidence bucket access over the storage provider's REST API.

Handles direct uploads and signed read/write URLs. Provider responses are not
consistent about the signed URL field name or about including the storage API
prefix in the returned path, so both are normalized here.
"""
from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import parse_qs, quote, urlsplit

import httpx
from loguru import logger

from app.core.config import IntakeConfig
from app.core.errors import StorageError, ValidationError

_BASE36 = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    if value == 0:
        return '0'
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return ''.join(reversed(digits))


def generate_evidence_key(extension: str, now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{now_ms}-{_base36(secrets.randbits(56))}.{extension}"


@dataclass(frozen=True)
class SignedUpload:
    key: str
    url: str
    token: Optional[str]


class EvidenceStore:
    def __init__(self, config: IntakeConfig, client: httpx.Client) -> None:
        self._config = config
        self._client = client
        self.bucket = config.evidence_bucket

    def _headers(self, content_type: str = 'application/json') -> dict[str, str]:
        return {
            'apikey': self._config.service_role,
            'Authorization': f"Bearer {self._config.service_role}",
            'Content-Type': content_type,
        }

    def new_key(self, extension: str) -> str:
        return generate_evidence_key(extension)

    def normalize_key(self, key: Optional[str]) -> str:
        cleaned = (key or '').strip().lstrip('/')
        prefix = f"{self.bucket}/"
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):]
        if not cleaned:
            raise ValidationError('Missing key')
        return cleaned

    def _object_url(self, *segments: str, key: str) -> str:
        path = '/'.join((*segments, self.bucket, quote(key, safe='')))
        return f"{self._config.storage_base}/{path}"

    def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._client.post(url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning('storage.request_failed', url=url, error=str(exc))
            raise StorageError(detail=str(exc)) from exc

    def put(self, key: str, data: bytes, content_type: str) -> str:
        key = self.normalize_key(key)
        headers = self._headers(content_type)
        headers['x-upsert'] = 'true'
        response = self._post(self._object_url('object', key=key), content=data, headers=headers)
        if not response.is_success:
            logger.warning('storage.upload_failed', key=key, status=response.status_code)
            raise StorageError('Upload failed', detail=response.text)
        logger.info('evidence.uploaded', key=key, size=len(data), content_type=content_type)
        return key

    def _sign(self, url: str, ttl_seconds: int) -> dict[str, Any]:
        response = self._post(url, json={'expiresIn': ttl_seconds}, headers=self._headers())
        if not response.is_success:
            logger.warning('storage.sign_failed', url=url, status=response.status_code)
            raise StorageError('Sign failed', detail=response.text)
        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageError('Bad sign response', detail=response.text) from exc
        if not isinstance(payload, dict):
            raise StorageError('Bad sign response', detail=response.text)
        return payload

    def absolute_signed_url(self, signed_path: str) -> str:
        """Turn a provider signed path into an absolute URL.

        The provider sometimes drops the storage API prefix from the path;
        it is added back unless already present.
        """
        if signed_path.startswith(('http://', 'https://')):
            return signed_path
        path = '/' + signed_path.lstrip('/')
        prefix = self._config.storage_prefix
        if prefix and not (path == prefix or path.startswith(prefix + '/')):
            path = prefix + path
        return f"{self._config.supabase_url}{path}"

    def _signed_url_from(self, payload: dict[str, Any]) -> str:
        signed_path = payload.get('signedURL') or payload.get('url')
        if not signed_path:
            raise StorageError('Signing response missing url', detail=payload)
        return self.absolute_signed_url(str(signed_path))

    def sign_for_read(self, key: str, ttl_seconds: Optional[int] = None) -> str:
        key = self.normalize_key(key)
        ttl = ttl_seconds or self._config.read_ttl_seconds
        payload = self._sign(self._object_url('object', 'sign', key=key), ttl)
        return self._signed_url_from(payload)

    def sign_for_write(self, key: str, ttl_seconds: Optional[int] = None) -> SignedUpload:
        key = self.normalize_key(key)
        ttl = ttl_seconds or self._config.write_ttl_seconds
        payload = self._sign(self._object_url('object', 'upload', 'sign', key=key), ttl)
        url = self._signed_url_from(payload)
        token = payload.get('token')
        if not token:
            token = (parse_qs(urlsplit(url).query).get('token') or [None])[0]
        logger.info('evidence.upload_signed', key=key, ttl=ttl)
        return SignedUpload(key=key, url=url, token=token)
