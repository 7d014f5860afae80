import anyio
from fastapi import APIRouter, Depends, Request
from loguru import logger
from app.core.container import ServiceContainer, get_container
from app.schemas.incident import ReportAccepted
from app.services.report_input import read_report_input

router = APIRouter(tags=['reports'])


@router.post('/report', response_model=ReportAccepted)
async def submit_report(
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> ReportAccepted:
    report_input = await read_report_input(request)
    report = await anyio.to_thread.run_sync(container.normalizer.normalize, report_input)
    inserted = await anyio.to_thread.run_sync(container.incidents.insert, report)
    logger.info(
        'incident.created',
        id=str(inserted.id),
        shape=report_input.shape.value,
        evidence=len(report.evidence_keys),
    )
    return ReportAccepted(
        id=inserted.id,
        created_at=inserted.created_at,
        evidence_keys=report.evidence_keys,
    )
