from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional

from loguru import logger

from app.core.errors import InvalidDateError, MissingFieldError, ValidationError
from app.schemas.incident import ContactInfo, IncidentReport
from app.services.content_classifier import FALLBACK_EXTENSION, classify
from app.services.evidence_policy import validate_evidence
from app.services.evidence_store import EvidenceStore
from app.services.report_input import FilePart, ReportInput

# canonical name -> accepted wire names, first non-blank wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    'incident_date': ('incident_date', 'reported_at'),
    'region': ('location', 'region'),
    'reporting_country': ('reporting_country',),
    'details': ('details', 'summary'),
    'reporter_name': ('reporter_name',),
    'phone': ('phone',),
}
REQUIRED_FIELDS = ('incident_date', 'region', 'reporting_country', 'details')


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        if isinstance(value, (dict, list)):
            return None
        value = str(value)
    value = value.strip()
    return value or None


def extract_fields(raw: Mapping[str, Any]) -> dict[str, Optional[str]]:
    fields: dict[str, Optional[str]] = {}
    for canonical, names in FIELD_ALIASES.items():
        fields[canonical] = next(
            (text for text in (_text(raw.get(name)) for name in names) if text is not None),
            None,
        )
    return fields


def parse_incident_date(value: str) -> datetime:
    """Parse the submitted incident date into an aware UTC datetime.

    Date-only values are pinned to 12:00 UTC so that rendering in any
    timezone within twelve hours of UTC keeps the submitted calendar day.
    """
    try:
        return datetime.combine(date.fromisoformat(value), time(12, 0), tzinfo=timezone.utc)
    except ValueError:
        pass
    candidate = value[:-1] + '+00:00' if value.endswith(('Z', 'z')) else value
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise InvalidDateError(value) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def build_contact(fields: Mapping[str, Optional[str]]) -> Optional[ContactInfo]:
    name = fields.get('reporter_name')
    phone = fields.get('phone')
    country = fields.get('reporting_country')
    if name is None and phone is None and country is None:
        return None
    return ContactInfo(name=name, phone=phone, reporting_country=country)


class ReportNormalizer:
    def __init__(
        self,
        evidence_store: EvidenceStore,
        *,
        default_category: str = 'attack',
        allow_bin_evidence: bool = True,
    ) -> None:
        self._store = evidence_store
        self._default_category = default_category
        self._allow_bin = allow_bin_evidence

    def _inline_key(self, file: FilePart) -> tuple[str, str]:
        classified = classify(file.data, file.content_type)
        if classified.extension == FALLBACK_EXTENSION and not self._allow_bin:
            raise ValidationError(f'unsupported file type: {classified.extension}')
        return self._store.new_key(classified.extension), classified.content_type

    def normalize(self, report_input: ReportInput) -> IncidentReport:
        keys = [self._store.normalize_key(key) for key in report_input.evidence_keys]
        pending_upload = None
        if report_input.file is not None:
            key, content_type = self._inline_key(report_input.file)
            keys.append(key)
            pending_upload = (key, report_input.file.data, content_type)

        validate_evidence(keys)

        fields = extract_fields(report_input.fields)
        for name in REQUIRED_FIELDS:
            if fields[name] is None:
                raise MissingFieldError(name)
        reported_at = parse_incident_date(fields['incident_date'])
        category = _text(report_input.fields.get('category')) or self._default_category

        # only durable keys may reach the record
        if pending_upload is not None:
            self._store.put(*pending_upload)

        logger.debug(
            'report.normalized',
            shape=report_input.shape.value,
            evidence=len(keys),
        )
        return IncidentReport(
            reported_at=reported_at,
            region=fields['region'],
            summary=fields['details'],
            category=category,
            contact=build_contact(fields),
            evidence_keys=keys,
        )
