from enum import Enum
import sqlalchemy as sa
from sqlalchemy import Column


class IncidentStatus(str, Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


REVIEW_STATUSES = frozenset({IncidentStatus.APPROVED, IncidentStatus.REJECTED})


def enum_column(enum_cls: type[Enum], name: str) -> Column:
    return Column(
        sa.Enum(
            enum_cls,
            values_callable=lambda enum: [item.value for item in enum],
            name=name,
            native_enum=False,
        ),
        nullable=False,
        index=True,
    )
