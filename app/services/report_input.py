"""Read an incoming report request into one of the supported wire shapes.

Three shapes have been used by clients over time: multipart forms carrying the
file inline, JSON bodies naming a single pre-uploaded ``evidence_key``, and
JSON bodies with an ``evidence_keys`` array. The body is read exactly once and
parsed into a :class:`ReportInput`; nothing downstream touches the request.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from starlette.datastructures import UploadFile
from starlette.requests import Request

from app.core.errors import ValidationError

FILE_FIELDS = ('evidence', 'file')
LEGACY_KEY_FIELDS = ('evidence_key', 'evidence_url')
PLURAL_KEY_FIELD = 'evidence_keys'


class InputShape(str, Enum):
    MULTIPART = 'multipart'
    JSON_LEGACY_SINGLE = 'json_legacy_single'
    JSON_PLURAL_ARRAY = 'json_plural_array'


@dataclass(frozen=True)
class FilePart:
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


@dataclass(frozen=True)
class ReportInput:
    shape: InputShape
    fields: Mapping[str, Any]
    evidence_keys: tuple[str, ...] = ()
    file: Optional[FilePart] = None


def is_multipart(content_type: Optional[str]) -> bool:
    return (content_type or '').lower().startswith('multipart/form-data')


def _key_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise ValidationError('evidence_keys must be an array of strings')
    keys = []
    for item in value:
        if item is None:
            continue
        if not isinstance(item, str):
            raise ValidationError('evidence_keys must be an array of strings')
        if item.strip():
            keys.append(item.strip())
    return keys


def _legacy_key(fields: Mapping[str, Any]) -> list[str]:
    for name in LEGACY_KEY_FIELDS:
        value = fields.get(name)
        if isinstance(value, str) and value.strip():
            return [value.strip()]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f'{name} must be a string')
    return []


def parse_json_report(body: bytes) -> ReportInput:
    try:
        payload = json.loads(body) if body.strip() else {}
    except ValueError as exc:
        raise ValidationError('Invalid JSON body') from exc
    if not isinstance(payload, dict):
        raise ValidationError('Invalid JSON body')
    if PLURAL_KEY_FIELD in payload:
        keys = _key_list(payload[PLURAL_KEY_FIELD])
        if keys:
            return ReportInput(
                shape=InputShape.JSON_PLURAL_ARRAY,
                fields=payload,
                evidence_keys=tuple(keys),
            )
    return ReportInput(
        shape=InputShape.JSON_LEGACY_SINGLE,
        fields=payload,
        evidence_keys=tuple(_legacy_key(payload)),
    )


def _form_keys(form) -> list[str]:
    keys: list[str] = []
    for raw in form.getlist(PLURAL_KEY_FIELD):
        if not isinstance(raw, str) or not raw.strip():
            continue
        text = raw.strip()
        if text.startswith('['):
            try:
                keys.extend(_key_list(json.loads(text)))
            except json.JSONDecodeError as exc:
                raise ValidationError('evidence_keys must be an array of strings') from exc
        else:
            keys.append(text)
    if keys:
        return keys
    text_fields = {name: value for name, value in form.items() if isinstance(value, str)}
    return _legacy_key(text_fields)


async def read_report_input(request: Request) -> ReportInput:
    content_type = request.headers.get('content-type')
    body = await request.body()
    if not is_multipart(content_type):
        return parse_json_report(body)

    # form() replays the cached body; the context closes spooled upload files
    async with request.form() as form:
        fields = {name: value for name, value in form.items() if isinstance(value, str)}
        upload = None
        for name in FILE_FIELDS:
            for candidate in form.getlist(name):
                if isinstance(candidate, UploadFile) and candidate.filename:
                    upload = candidate
                    break
            if upload is not None:
                break
        file_part = None
        if upload is not None:
            data = await upload.read()
            if data:
                file_part = FilePart(
                    filename=upload.filename,
                    content_type=upload.content_type,
                    data=data,
                )
        return ReportInput(
            shape=InputShape.MULTIPART,
            fields=fields,
            evidence_keys=tuple(_form_keys(form)),
            file=file_part,
        )
