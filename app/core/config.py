from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigurationError

DEFAULT_PROJECT_NAME = "Incident Intake API"
DEFAULT_API_PREFIX = "/api"
DEFAULT_EVIDENCE_BUCKET = "evidence"
DEFAULT_CATEGORY = "attack"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    PROJECT_NAME: str = DEFAULT_PROJECT_NAME
    API_PREFIX: str = DEFAULT_API_PREFIX
    ENV: str = 'development'
    DEBUG: bool = False

    LOG_LEVEL: str = 'INFO'
    CORS_ORIGINS: list[str] = ['*']

    SUPABASE_URL: str = ''
    SUPABASE_SERVICE_ROLE: str = ''
    DB_SCHEMA: str = 'public'
    INCIDENTS_TABLE: str = 'incidents'
    EVIDENCE_BUCKET: str = DEFAULT_EVIDENCE_BUCKET
    STORAGE_API_PREFIX: str = '/storage/v1'
    REST_API_PREFIX: str = '/rest/v1'

    INCIDENT_STORE: str = 'rest'
    DATABASE_URL: str = 'sqlite:///./incidents.db'
    AUTO_CREATE_TABLES: bool = False

    DEFAULT_CATEGORY: str = DEFAULT_CATEGORY
    ALLOW_BIN_EVIDENCE: bool = True
    SIGNED_READ_TTL_SECONDS: int = 60 * 60
    SIGNED_WRITE_TTL_SECONDS: int = 60 * 10
    PUBLIC_FEED_LIMIT: int = 20
    ADMIN_FEED_LIMIT: int = 200

    ADMIN_TOKEN: Optional[str] = None
    SITE_PASSWORD: Optional[str] = None
    AUTH_COOKIE_NAME: str = 'kt_auth'
    AUTH_COOKIE_MAX_AGE: int = 60 * 60 * 24

    BASIC_AUTH_USER: Optional[str] = None
    BASIC_AUTH_PASS: Optional[str] = None
    BASIC_AUTH_REALM: str = 'KT Insight Reports'

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, value):  # type: ignore[override]
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return []
            if value == '*':
                return ['*']
            return [item.strip() for item in value.split(',') if item.strip()]
        return value


class IntakeConfig(BaseModel):
    """Resolved configuration handed to every component constructor."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    supabase_url: str = Field(..., min_length=1)
    service_role: str = Field(..., min_length=1)
    db_schema: str = 'public'
    incidents_table: str = 'incidents'
    evidence_bucket: str = DEFAULT_EVIDENCE_BUCKET
    storage_prefix: str = '/storage/v1'
    rest_prefix: str = '/rest/v1'
    incident_store: Literal['rest', 'sql'] = 'rest'
    default_category: str = DEFAULT_CATEGORY
    allow_bin_evidence: bool = True
    read_ttl_seconds: int = Field(default=3600, gt=0)
    write_ttl_seconds: int = Field(default=600, gt=0)
    public_feed_limit: int = Field(default=20, gt=0)
    admin_feed_limit: int = Field(default=200, gt=0)
    admin_token: Optional[str] = None
    site_password: Optional[str] = None

    @property
    def storage_base(self) -> str:
        return f"{self.supabase_url}{self.storage_prefix}"

    @property
    def rest_base(self) -> str:
        return f"{self.supabase_url}{self.rest_prefix}"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _prefix(value: str) -> str:
    value = '/' + value.strip().strip('/')
    return value if value != '/' else ''


def build_intake_config(source: Settings) -> IntakeConfig:
    missing = [
        name
        for name, value in (
            ('SUPABASE_URL', source.SUPABASE_URL),
            ('SUPABASE_SERVICE_ROLE', source.SUPABASE_SERVICE_ROLE),
        )
        if not _clean(value)
    ]
    if missing:
        raise ConfigurationError(
            'Missing server configuration',
            detail=f"unset: {', '.join(missing)}",
        )
    store = source.INCIDENT_STORE.strip().lower()
    if store not in ('rest', 'sql'):
        raise ConfigurationError(
            'Missing server configuration',
            detail=f"INCIDENT_STORE must be 'rest' or 'sql', got {source.INCIDENT_STORE!r}",
        )
    bucket = source.EVIDENCE_BUCKET.strip().strip('/')
    if not bucket:
        raise ConfigurationError('Missing server configuration', detail='unset: EVIDENCE_BUCKET')
    return IntakeConfig(
        supabase_url=source.SUPABASE_URL.strip().rstrip('/'),
        service_role=source.SUPABASE_SERVICE_ROLE.strip(),
        db_schema=source.DB_SCHEMA,
        incidents_table=source.INCIDENTS_TABLE,
        evidence_bucket=bucket,
        storage_prefix=_prefix(source.STORAGE_API_PREFIX),
        rest_prefix=_prefix(source.REST_API_PREFIX),
        incident_store=store,
        default_category=source.DEFAULT_CATEGORY.strip() or DEFAULT_CATEGORY,
        allow_bin_evidence=source.ALLOW_BIN_EVIDENCE,
        read_ttl_seconds=source.SIGNED_READ_TTL_SECONDS,
        write_ttl_seconds=source.SIGNED_WRITE_TTL_SECONDS,
        public_feed_limit=source.PUBLIC_FEED_LIMIT,
        admin_feed_limit=source.ADMIN_FEED_LIMIT,
        admin_token=_clean(source.ADMIN_TOKEN),
        site_password=_clean(source.SITE_PASSWORD),
    )


settings = Settings()
