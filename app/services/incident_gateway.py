"""Persistence of incident records.

``RestIncidentGateway`` talks to the hosted PostgREST endpoint; the SQL
gateway keeps the same contract over a local SQLModel table.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

import httpx
from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.config import IntakeConfig
from app.core.errors import GatewayError, ValidationError
from app.models.enums import REVIEW_STATUSES, IncidentStatus
from app.models.incident import Incident
from app.schemas.incident import IncidentRecord, IncidentReport, InsertedIncident

IncidentId = Union[int, str]


def ensure_review_status(status: Any) -> IncidentStatus:
    try:
        resolved = IncidentStatus(status)
    except (TypeError, ValueError):
        resolved = None
    if resolved not in REVIEW_STATUSES:
        raise ValidationError('Missing or invalid id/status', detail={'status': status})
    return resolved


def _ensure_id(incident_id: Optional[IncidentId]) -> IncidentId:
    if incident_id is None or (isinstance(incident_id, str) and not incident_id.strip()):
        raise ValidationError('Missing or invalid id/status', detail={'id': incident_id})
    return incident_id.strip() if isinstance(incident_id, str) else incident_id


class IncidentGateway(ABC):
    @abstractmethod
    def insert(self, report: IncidentReport) -> InsertedIncident:
        """Store ``report`` as a new pending record."""

    @abstractmethod
    def list_recent(self, limit: int, status: Optional[IncidentStatus] = None) -> list[IncidentRecord]:
        """Newest first by ``reported_at``, records without one last."""

    @abstractmethod
    def set_status(self, incident_id: IncidentId, status: Any) -> list[IncidentRecord]:
        """Apply a review decision; returns the updated records."""


class RestIncidentGateway(IncidentGateway):
    def __init__(self, config: IntakeConfig, client: httpx.Client) -> None:
        self._config = config
        self._client = client
        self._url = f"{config.rest_base}/{config.incidents_table}"

    def _headers(self, write: bool = False) -> dict[str, str]:
        headers = {
            'apikey': self._config.service_role,
            'Authorization': f"Bearer {self._config.service_role}",
            'Accept': 'application/json',
        }
        if write:
            headers['Content-Type'] = 'application/json'
            headers['Content-Profile'] = self._config.db_schema
            headers['Prefer'] = 'return=representation'
        else:
            headers['Accept-Profile'] = self._config.db_schema
        return headers

    def _send(self, operation: str, method: str, **kwargs: Any) -> list[dict[str, Any]]:
        try:
            response = self._client.request(method, self._url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning('gateway.request_failed', operation=operation, error=str(exc))
            raise GatewayError(f'Supabase {operation} failed', detail=str(exc)) from exc
        if not response.is_success:
            logger.warning(
                'gateway.request_failed',
                operation=operation,
                status=response.status_code,
            )
            raise GatewayError(f'Supabase {operation} failed', detail=response.text)
        if not response.content.strip():
            return []
        try:
            rows = response.json()
        except ValueError as exc:
            raise GatewayError(f'Supabase {operation} failed', detail=response.text) from exc
        return rows if isinstance(rows, list) else [rows]

    def insert(self, report: IncidentReport) -> InsertedIncident:
        rows = self._send('insert', 'POST', json=[report.to_row()], headers=self._headers(write=True))
        if not rows:
            raise GatewayError('Supabase insert failed', detail='no row returned')
        row = rows[0]
        return InsertedIncident(id=row['id'], created_at=row.get('created_at'))

    def list_recent(self, limit: int, status: Optional[IncidentStatus] = None) -> list[IncidentRecord]:
        params = {
            'select': '*',
            'order': 'reported_at.desc.nullslast',
            'limit': str(limit),
        }
        if status is not None:
            params['status'] = f'eq.{IncidentStatus(status).value}'
        rows = self._send('select', 'GET', params=params, headers=self._headers())
        return [IncidentRecord.from_row(row) for row in rows]

    def set_status(self, incident_id: IncidentId, status: Any) -> list[IncidentRecord]:
        resolved = ensure_review_status(status)
        incident_id = _ensure_id(incident_id)
        params = {
            'id': f'eq.{incident_id}',
            'status': f'in.({IncidentStatus.PENDING.value},{resolved.value})',
        }
        rows = self._send(
            'update',
            'PATCH',
            params=params,
            json={'status': resolved.value},
            headers=self._headers(write=True),
        )
        return [IncidentRecord.from_row(row) for row in rows]


class SqlIncidentGateway(IncidentGateway):
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @staticmethod
    def _record(row: Incident) -> IncidentRecord:
        return IncidentRecord.from_row(row.model_dump())

    def insert(self, report: IncidentReport) -> InsertedIncident:
        values = report.to_row()
        values['reported_at'] = report.reported_at
        values['status'] = IncidentStatus.PENDING
        try:
            with Session(self._engine) as session:
                row = Incident(**values)
                session.add(row)
                session.commit()
                session.refresh(row)
                return InsertedIncident(id=row.id, created_at=row.created_at)
        except SQLAlchemyError as exc:
            logger.warning('gateway.request_failed', operation='insert', error=str(exc))
            raise GatewayError('Database insert failed', detail=str(exc)) from exc

    def list_recent(self, limit: int, status: Optional[IncidentStatus] = None) -> list[IncidentRecord]:
        statement = select(Incident)
        if status is not None:
            statement = statement.where(Incident.status == IncidentStatus(status))
        statement = statement.order_by(Incident.reported_at.desc().nulls_last()).limit(limit)
        try:
            with Session(self._engine) as session:
                return [self._record(row) for row in session.exec(statement).all()]
        except SQLAlchemyError as exc:
            logger.warning('gateway.request_failed', operation='select', error=str(exc))
            raise GatewayError('Database select failed', detail=str(exc)) from exc

    def set_status(self, incident_id: IncidentId, status: Any) -> list[IncidentRecord]:
        resolved = ensure_review_status(status)
        incident_id = _ensure_id(incident_id)
        statement = select(Incident).where(
            Incident.id == str(incident_id),
            Incident.status.in_([IncidentStatus.PENDING, resolved]),
        )
        try:
            with Session(self._engine) as session:
                rows = list(session.exec(statement).all())
                for row in rows:
                    row.status = resolved
                    session.add(row)
                session.commit()
                for row in rows:
                    session.refresh(row)
                return [self._record(row) for row in rows]
        except SQLAlchemyError as exc:
            logger.warning('gateway.request_failed', operation='update', error=str(exc))
            raise GatewayError('Database update failed', detail=str(exc)) from exc
