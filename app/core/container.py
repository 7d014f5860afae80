from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import httpx
from loguru import logger

from app.core.config import IntakeConfig, build_intake_config, settings
from app.services.evidence_store import EvidenceStore
from app.services.incident_gateway import IncidentGateway, RestIncidentGateway, SqlIncidentGateway
from app.services.report_normalizer import ReportNormalizer


@dataclass
class ServiceContainer:
    config: IntakeConfig
    http_client: httpx.Client
    evidence_store: EvidenceStore
    incidents: IncidentGateway
    normalizer: ReportNormalizer

    def close(self) -> None:
        self.http_client.close()


def build_container(
    config: IntakeConfig,
    *,
    http_client: Optional[httpx.Client] = None,
    incidents: Optional[IncidentGateway] = None,
) -> ServiceContainer:
    client = http_client or httpx.Client()
    store = EvidenceStore(config, client)
    if incidents is None:
        if config.incident_store == 'sql':
            from app.db.session import engine

            incidents = SqlIncidentGateway(engine)
        else:
            incidents = RestIncidentGateway(config, client)
    normalizer = ReportNormalizer(
        store,
        default_category=config.default_category,
        allow_bin_evidence=config.allow_bin_evidence,
    )
    logger.info(
        'container.ready',
        incident_store=config.incident_store,
        bucket=config.evidence_bucket,
    )
    return ServiceContainer(
        config=config,
        http_client=client,
        evidence_store=store,
        incidents=incidents,
        normalizer=normalizer,
    )


@lru_cache
def get_container() -> ServiceContainer:
    return build_container(build_intake_config(settings))


def reset_container() -> None:
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()
