import json
from datetime import datetime, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import IncidentStatus

MAX_EVIDENCE_KEYS = 2


def to_iso(value: datetime) -> str:
    """Serialize as UTC ISO-8601 with milliseconds and a trailing ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class ContactInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    reporting_country: Optional[str] = Field(default=None, alias='reportingCountry')

    def to_text(self) -> str:
        return json.dumps(
            {'name': self.name, 'phone': self.phone, 'reportingCountry': self.reporting_country},
            ensure_ascii=False,
        )

    @classmethod
    def from_text(cls, raw: str) -> Union['ContactInfo', str]:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            return raw
        if not isinstance(payload, dict):
            return raw
        return cls(
            name=payload.get('name'),
            phone=payload.get('phone'),
            reporting_country=payload.get('reportingCountry', payload.get('reporting_country')),
        )


class IncidentReport(BaseModel):
    """Canonical report, ready to be inserted as a pending record."""

    reported_at: datetime
    region: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1)
    category: str
    contact: Optional[ContactInfo] = None
    evidence_keys: list[str] = Field(default_factory=list, max_length=MAX_EVIDENCE_KEYS)
    status: IncidentStatus = IncidentStatus.PENDING

    def to_row(self) -> dict[str, Any]:
        return {
            'reported_at': to_iso(self.reported_at),
            'region': self.region,
            'summary': self.summary,
            'category': self.category,
            'contact': self.contact.to_text() if self.contact else None,
            'evidence_keys': json.dumps(self.evidence_keys) if self.evidence_keys else None,
            'status': IncidentStatus.PENDING.value,
        }


def _parse_evidence(row: dict[str, Any]) -> list[str]:
    raw = row.get('evidence_keys')
    if isinstance(raw, list):
        return [str(item) for item in raw]
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return [raw]
        if isinstance(parsed, list):
            return [str(item) for item in parsed]
        return [str(parsed)]
    legacy = row.get('evidence_url')
    if isinstance(legacy, str) and legacy.strip():
        return [legacy.strip()]
    return []


class IncidentRecord(BaseModel):
    id: Union[int, str]
    created_at: Optional[datetime] = None
    reported_at: Optional[datetime] = None
    region: Optional[str] = None
    summary: Optional[str] = None
    category: Optional[str] = None
    contact: Optional[Union[ContactInfo, str]] = None
    evidence_keys: list[str] = Field(default_factory=list)
    status: IncidentStatus = IncidentStatus.PENDING

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> 'IncidentRecord':
        contact = row.get('contact')
        if isinstance(contact, str) and contact:
            contact = ContactInfo.from_text(contact)
        elif isinstance(contact, dict):
            contact = ContactInfo.from_text(json.dumps(contact))
        else:
            contact = None
        return cls(
            id=row['id'],
            created_at=row.get('created_at'),
            reported_at=row.get('reported_at'),
            region=row.get('region'),
            summary=row.get('summary'),
            category=row.get('category'),
            contact=contact,
            evidence_keys=_parse_evidence(row),
            status=row.get('status') or IncidentStatus.PENDING,
        )


class InsertedIncident(BaseModel):
    id: Union[int, str]
    created_at: Optional[datetime] = None


class ReportAccepted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    id: Union[int, str]
    created_at: Optional[datetime] = Field(default=None, alias='createdAt')
    evidence_keys: list[str] = Field(default_factory=list, alias='evidenceKeys')


class ReviewRequest(BaseModel):
    id: Union[int, str]
    status: str


class ReviewResult(BaseModel):
    ok: bool = True
    updated: list[IncidentRecord]


class SignUploadRequest(BaseModel):
    ext: Optional[str] = None


class SignUploadResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    key: str
    signed_upload_url: str = Field(alias='signedUploadUrl')
    token: Optional[str] = None


class UploadResponse(BaseModel):
    ok: bool = True
    key: str


class SitePasswordRequest(BaseModel):
    password: Optional[str] = None


class SessionStatus(BaseModel):
    ok: bool
