from typing import Optional
from fastapi import APIRouter, Cookie, Depends, Response
from app.core.config import settings
from app.core.container import ServiceContainer, get_container
from app.schemas.incident import SessionStatus, SitePasswordRequest
from app.services.auth_service import check_site_password, has_site_session

router = APIRouter(tags=['auth'])


@router.post('/auth', response_model=SessionStatus)
def login(
    payload: SitePasswordRequest,
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> SessionStatus:
    check_site_password(payload.password, container.config.site_password)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        'yes',
        max_age=settings.AUTH_COOKIE_MAX_AGE,
        path='/',
        httponly=True,
        samesite='lax',
    )
    return SessionStatus(ok=True)


@router.get('/session', response_model=SessionStatus)
def session_status(
    kt_auth: Optional[str] = Cookie(default=None, alias=settings.AUTH_COOKIE_NAME),
) -> SessionStatus:
    return SessionStatus(ok=has_site_session(kt_auth))
