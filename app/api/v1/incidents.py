from fastapi import APIRouter, Depends
from loguru import logger
from app.core.container import ServiceContainer, get_container
from app.models.enums import IncidentStatus
from app.schemas.incident import IncidentRecord, ReviewRequest, ReviewResult
from app.services.auth_service import require_admin

router = APIRouter(tags=['incidents'])


@router.get('/incidents', response_model=list[IncidentRecord])
def public_incidents(container: ServiceContainer = Depends(get_container)) -> list[IncidentRecord]:
    return container.incidents.list_recent(
        container.config.public_feed_limit,
        status=IncidentStatus.APPROVED,
    )


@router.get('/pending-incidents', response_model=list[IncidentRecord], dependencies=[Depends(require_admin)])
def pending_incidents(container: ServiceContainer = Depends(get_container)) -> list[IncidentRecord]:
    return container.incidents.list_recent(
        container.config.admin_feed_limit,
        status=IncidentStatus.PENDING,
    )


@router.post('/review-incident', response_model=ReviewResult, dependencies=[Depends(require_admin)])
def review_incident(
    payload: ReviewRequest,
    container: ServiceContainer = Depends(get_container),
) -> ReviewResult:
    updated = container.incidents.set_status(payload.id, payload.status)
    logger.info('admin.review', id=str(payload.id), status=payload.status, updated=len(updated))
    return ReviewResult(updated=updated)
