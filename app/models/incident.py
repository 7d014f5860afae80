from typing import Optional
from datetime import datetime
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel
from app.models.enums import IncidentStatus, enum_column


class Incident(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'incidents'

    reported_at: Optional[datetime] = Field(
        default=None,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=True, index=True),
    )
    region: str
    summary: str = Field(sa_column=sa.Column(sa.Text(), nullable=False))
    category: str
    contact: Optional[str] = Field(default=None, sa_column=sa.Column(sa.Text()))
    evidence_keys: Optional[str] = Field(default=None, sa_column=sa.Column(sa.Text()))
    status: IncidentStatus = Field(
        default=IncidentStatus.PENDING,
        sa_column=enum_column(IncidentStatus, 'incident_status'),
    )
