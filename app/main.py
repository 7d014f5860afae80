from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.container import get_container, reset_container
from app.core.errors import IntakeError
from app.core.logging import configure_logging
from app.core.site_gate import BasicAuthGate
from app.db.init_db import init_db

configure_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(_: FastAPI):
    container = get_container()
    if container.config.incident_store == 'sql':
        init_db()
    yield
    reset_container()

app = FastAPI(title=settings.PROJECT_NAME, debug=settings.DEBUG, lifespan=lifespan)

allow_origins = settings.CORS_ORIGINS
allow_credentials = '*' not in allow_origins


def _server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error('request.crashed', path=request.url.path)
    return JSONResponse(status_code=500, content={'error': 'Server error'})


async def catch_unexpected_errors(request: Request, call_next):
    # registered before CORSMiddleware; crash responses need CORS headers too
    try:
        return await call_next(request)
    except Exception as exc:
        return _server_error(request, exc)


app.add_middleware(BaseHTTPMiddleware, dispatch=catch_unexpected_errors)
app.add_middleware(
    BasicAuthGate,
    user=settings.BASIC_AUTH_USER,
    password=settings.BASIC_AUTH_PASS,
    realm=settings.BASIC_AUTH_REALM,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(IntakeError)
async def intake_error_handler(request: Request, exc: IntakeError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        'request.failed',
        path=request.url.path,
        code=exc.code,
        status=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_payload()))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={'error': exc.detail},
        headers=getattr(exc, 'headers', None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={'error': 'Invalid request', 'detail': jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return _server_error(request, exc)


app.include_router(api_router)
