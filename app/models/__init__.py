from app.models.base import IDModel, TimestampModel
from app.models.incident import Incident

__all__ = [
    'IDModel',
    'TimestampModel',
    'Incident',
]
