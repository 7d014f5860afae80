from fastapi import APIRouter
from app.api.v1 import health, auth, reports, evidence, incidents
from app.core.config import settings

api_router = APIRouter(prefix=settings.API_PREFIX)

api_router.include_router(health.router, tags=['health'])
api_router.include_router(auth.router)
api_router.include_router(reports.router)
api_router.include_router(evidence.router)
api_router.include_router(incidents.router)
