from collections import Counter
from enum import Enum
from typing import Iterable

from app.core.errors import PolicyError

MAX_EVIDENCE_FILES = 2
IMAGE_SUFFIXES = frozenset({'png', 'jpg', 'jpeg', 'gif', 'webp', 'bmp', 'svg'})


class EvidenceClass(str, Enum):
    IMAGE = 'image'
    PDF = 'pdf'
    OTHER = 'other'


def classify_key(key: str) -> EvidenceClass:
    """Classify a stored key by its filename suffix alone."""
    _, dot, suffix = key.rpartition('.')
    if not dot:
        return EvidenceClass.OTHER
    suffix = suffix.lower()
    if suffix == 'pdf':
        return EvidenceClass.PDF
    if suffix in IMAGE_SUFFIXES:
        return EvidenceClass.IMAGE
    return EvidenceClass.OTHER


def validate_evidence(keys: Iterable[str]) -> None:
    keys = list(keys)
    if len(keys) > MAX_EVIDENCE_FILES:
        raise PolicyError('too many evidence files')
    counts = Counter(classify_key(key) for key in keys)
    if counts[EvidenceClass.PDF] > 1 or counts[EvidenceClass.IMAGE] > 1:
        raise PolicyError('at most one image and one PDF')
