import base64
import binascii
import secrets
from typing import Optional

from fastapi import Depends, Header
from loguru import logger

from app.core.container import ServiceContainer, get_container
from app.core.errors import ConfigurationError, Unauthorized


def _matches(candidate: Optional[str], expected: str) -> bool:
    if candidate is None:
        return False
    return secrets.compare_digest(candidate.encode('utf-8'), expected.encode('utf-8'))


def check_admin_token(token: Optional[str], expected: Optional[str]) -> None:
    if not expected:
        raise ConfigurationError('Missing server configuration', detail='ADMIN_TOKEN is not set')
    if not _matches(token, expected):
        logger.warning('admin.unauthorized')
        raise Unauthorized()


def require_admin(
    x_admin_token: Optional[str] = Header(default=None),
    container: ServiceContainer = Depends(get_container),
) -> None:
    check_admin_token(x_admin_token, container.config.admin_token)


def check_site_password(password: Optional[str], expected: Optional[str]) -> None:
    if not expected:
        raise ConfigurationError('Server password not set')
    if not _matches(password, expected):
        raise Unauthorized('Incorrect password')


def has_site_session(cookie_value: Optional[str]) -> bool:
    return cookie_value == 'yes'


def parse_basic_credentials(header: Optional[str]) -> Optional[tuple[str, str]]:
    if not header:
        return None
    scheme, _, encoded = header.partition(' ')
    if scheme.lower() != 'basic' or not encoded:
        return None
    try:
        decoded = base64.b64decode(encoded.strip(), validate=True).decode('utf-8')
    except (binascii.Error, UnicodeDecodeError):
        return None
    user, sep, password = decoded.partition(':')
    if not sep:
        return None
    return user, password


def basic_auth_allows(header: Optional[str], user: str, password: str) -> bool:
    credentials = parse_basic_credentials(header)
    if credentials is None:
        return False
    return _matches(credentials[0], user) and _matches(credentials[1], password)
