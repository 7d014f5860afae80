import re
from dataclasses import dataclass
from typing import Optional

CONTENT_TYPES: dict[str, str] = {
    'pdf': 'application/pdf',
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'webp': 'image/webp',
    'gif': 'image/gif',
    'bin': 'application/octet-stream',
}
ALLOWED_EXTENSIONS = frozenset(CONTENT_TYPES)
FALLBACK_EXTENSION = 'bin'

# First matching substring wins.
_DECLARED_HINTS: tuple[tuple[str, str], ...] = (
    ('png', 'png'),
    ('jpeg', 'jpg'),
    ('jpg', 'jpg'),
    ('webp', 'webp'),
    ('gif', 'gif'),
    ('pdf', 'pdf'),
)
_EXTENSION_ALIASES = {'jpeg': 'jpg'}
_NON_ALNUM = re.compile(r'[^a-z0-9]')


@dataclass(frozen=True)
class ClassifiedContent:
    extension: str
    content_type: str


def extension_from_declared(declared_content_type: Optional[str]) -> Optional[str]:
    if not declared_content_type:
        return None
    declared = declared_content_type.lower()
    for hint, extension in _DECLARED_HINTS:
        if hint in declared:
            return extension
    return None


def sniff_extension(buffer: bytes) -> str:
    head = bytes(buffer[:8])
    if head[:4] == b'%PDF':
        return 'pdf'
    if head[:4] == b'\x89PNG':
        return 'png'
    if head[:3] == b'\xff\xd8\xff':
        return 'jpg'
    if head[:3] == b'GIF':
        return 'gif'
    return FALLBACK_EXTENSION


def classify(buffer: bytes, declared_content_type: Optional[str] = None) -> ClassifiedContent:
    """Resolve the extension and content type of an uploaded file.

    A recognised declared content type wins; magic bytes are only consulted
    when the declaration is missing or unrecognised. Unknown content ends up
    as ``bin``.
    """
    extension = extension_from_declared(declared_content_type) or sniff_extension(buffer)
    declared = (declared_content_type or '').strip()
    return ClassifiedContent(extension=extension, content_type=declared or CONTENT_TYPES[extension])


def normalize_extension(raw: Optional[str]) -> str:
    """Clean a client-supplied extension (``".JPEG"`` -> ``"jpg"``)."""
    cleaned = _NON_ALNUM.sub('', (raw or '').lower())
    if not cleaned:
        return FALLBACK_EXTENSION
    return _EXTENSION_ALIASES.get(cleaned, cleaned)
