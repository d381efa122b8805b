from datetime import date
import pytest
from werkzeug.exceptions import BadRequest
from assetflow.config.pagination import normalize_pagination, DEFAULT_LIMIT, MAX_LIMIT
from assetflow.constants.permissions import permissions_for_role
from assetflow.services.blobs import looks_like_pdf
from assetflow.utils.dates import parse_date, display_date, iso
from assetflow.utils.validation import coerce_number, strict_number, parse_int, validate_choice, require_fields


@pytest.mark.parametrize('raw,expected', [
    ('2025-03-01', date(2025, 3, 1)),
    ('2025-03-01T10:00:00Z', date(2025, 3, 1)),
    ('2025-03-01T00:00:00.000Z', date(2025, 3, 1)),
    ('01-03-2025', date(2025, 3, 1)),
    (date(2024, 2, 29), date(2024, 2, 29)),
    ('garbage', None),
    ('', None),
    (None, None),
    (12345, None),
])
def test_parse_date(raw, expected):
    assert parse_date(raw) == expected


def test_display_and_iso_dates():
    assert display_date('2025-12-05') == '12/5/2025'
    assert display_date('nope') == 'Invalid Date'
    assert iso(date(2025, 1, 2)) == '2025-01-02'
    assert iso(None) is None


def test_number_helpers():
    assert coerce_number('3.5') == 3.5
    assert coerce_number('x', default=1.0) == 1.0
    assert coerce_number(True) == 0.0
    assert coerce_number(float('nan')) == 0.0
    assert strict_number('7', 'quantity') == 7.0
    with pytest.raises(BadRequest):
        strict_number('', 'quantity')
    with pytest.raises(BadRequest):
        strict_number(-1, 'quantity', minimum=0)
    assert parse_int('-2', 'itemIndex') == -2
    assert parse_int(3.0, 'itemIndex') == 3
    for bad in ('1.5', 1.5, None, True, [1]):
        with pytest.raises(BadRequest):
            parse_int(bad, 'itemIndex')


def test_choice_and_required_fields():
    assert validate_choice('capital', ('capital', 'revenue'), 'type') == 'capital'
    with pytest.raises(BadRequest):
        validate_choice('x', ('capital',), 'type')
    with pytest.raises(BadRequest) as exc:
        require_fields({'a': 1, 'b': ''}, 'a', 'b', 'c')
    assert exc.value.description == 'b, c required'


def test_pagination_bounds():
    assert normalize_pagination(None, None) == (DEFAULT_LIMIT, 0)
    assert normalize_pagination('500', '5')[0] == MAX_LIMIT
    with pytest.raises(ValueError):
        normalize_pagination('ten', None)


def test_role_presets():
    officer = permissions_for_role('department-officer')
    admin = permissions_for_role('admin')
    assert 'ASSET.REQUEST_UPDATE' in officer and 'ASSET.UPDATE' not in officer
    assert 'ASSET.REVIEW_UPDATE' in admin and 'ASSET.REQUEST_UPDATE' not in admin
    assert permissions_for_role('user') == []


def test_pdf_sniffing():
    assert looks_like_pdf('Bill.PDF', 'application/pdf', b'%PDF-')
    assert looks_like_pdf('bill.pdf', 'application/octet-stream', b'%PDF-')
    assert not looks_like_pdf('bill.pdf', 'image/png', b'%PDF-')
    assert not looks_like_pdf('bill.exe', 'application/pdf', b'%PDF-')
    assert not looks_like_pdf('bill.pdf', 'application/pdf', b'MZ\x90')
