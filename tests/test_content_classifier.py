import pytest

from app.services.content_classifier import classify, normalize_extension, sniff_extension
from support import JPEG_BYTES, PDF_BYTES, PNG_BYTES


@pytest.mark.parametrize(
    ('data', 'extension', 'content_type'),
    [
        (PDF_BYTES, 'pdf', 'application/pdf'),
        (PNG_BYTES, 'png', 'image/png'),
        (JPEG_BYTES, 'jpg', 'image/jpeg'),
        (b'GIF89a' + b'\x00' * 10, 'gif', 'image/gif'),
        (b'hello world', 'bin', 'application/octet-stream'),
        (b'', 'bin', 'application/octet-stream'),
    ],
)
def test_sniffs_magic_bytes_without_declared_type(data, extension, content_type):
    result = classify(data, None)
    assert result.extension == extension
    assert result.content_type == content_type


def test_declared_type_wins_over_conflicting_magic_bytes():
    result = classify(PDF_BYTES, 'image/png')
    assert result.extension == 'png'
    assert result.content_type == 'image/png'


def test_declared_jpeg_variants_map_to_jpg():
    assert classify(PNG_BYTES, 'image/jpeg').extension == 'jpg'
    assert classify(PNG_BYTES, 'image/JPG').extension == 'jpg'


def test_declared_webp_is_recognised_without_sniffing():
    result = classify(b'RIFF....WEBPVP8 ', 'image/webp')
    assert result.extension == 'webp'
    assert result.content_type == 'image/webp'


def test_unrecognised_declared_type_falls_back_to_sniffing_but_keeps_declared_content_type():
    result = classify(PNG_BYTES, 'application/octet-stream')
    assert result.extension == 'png'
    assert result.content_type == 'application/octet-stream'


def test_sniff_only_looks_at_leading_bytes():
    assert sniff_extension(b'xx%PDF') == 'bin'


@pytest.mark.parametrize(
    ('raw', 'expected'),
    [('PDF', 'pdf'), ('.jpeg', 'jpg'), ('p n g', 'png'), (None, 'bin'), ('', 'bin'), ('../exe', 'exe')],
)
def test_normalize_extension(raw, expected):
    assert normalize_extension(raw) == expected
