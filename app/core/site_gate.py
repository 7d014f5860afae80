from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from app.services.auth_service import basic_auth_allows


class BasicAuthGate(BaseHTTPMiddleware):
    """HTTP basic auth in front of the whole site, off unless both credentials are set."""

    def __init__(self, app, user: Optional[str], password: Optional[str], realm: str) -> None:
        super().__init__(app)
        self.user = user or None
        self.password = password or None
        self.realm = realm

    @property
    def enabled(self) -> bool:
        return bool(self.user and self.password)

    async def dispatch(self, request: Request, call_next):
        if not self.enabled or request.method == 'OPTIONS':
            return await call_next(request)
        if basic_auth_allows(request.headers.get('authorization'), self.user, self.password):
            return await call_next(request)
        return PlainTextResponse(
            'Authentication required',
            status_code=401,
            headers={'WWW-Authenticate': f'Basic realm="{self.realm}"'},
        )
