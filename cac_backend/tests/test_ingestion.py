"""
Upload Ingestion Test Module

Covers cell coercion, CSV and Excel parsing, upload rejection and the TTL
upload cache.
"""

from datetime import date, datetime
import io
from types import SimpleNamespace

import pandas as pd
import pytest
from openpyxl import Workbook

from cac_backend.models.enums import FileType
from cac_backend.services import ingestion
from cac_backend.services.ingestion import (
    UploadCache,
    UploadValidationError,
    coerce_cell,
    file_extension,
    parse_csv,
    parse_upload,
)


def _workbook_bytes(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# =============================================================================
# Test Class: TestCoerceCell
# =============================================================================

class TestCoerceCell:

    @pytest.mark.parametrize("raw, expected", [
        (None, ''),
        (float('nan'), ''),
        (pd.NaT, ''),
        ('  Google Ads ', 'Google Ads'),
        ('1000', 1000.0),
        (' 12.5 ', 12.5),
        ('1e3', 1000.0),
        ('12.5 USD', '12.5 USD'),
        ('2024-01-01', '2024-01-01'),
        (7, 7.0),
        (True, True),
        (date(2024, 1, 2), '2024-01-02'),
        (datetime(2024, 1, 2, 15, 30), '2024-01-02'),
        (pd.Timestamp('2024-03-04'), '2024-03-04'),
    ])
    def test_coerce_cell(self, raw, expected):
        assert coerce_cell(raw) == expected


# =============================================================================
# Test Class: TestCSVParsing
# =============================================================================

class TestCSVParsing:

    def test_parses_header_and_rows(self):
        headers, rows = parse_csv(
            'date,channel,spend\n'
            '2024-01-01,Google Ads,1000\n'
            '\n'
            '2024-01-02, Facebook ,250.5\n'
        )

        assert headers == ['date', 'channel', 'spend']
        assert rows == [
            {'date': '2024-01-01', 'channel': 'Google Ads', 'spend': 1000.0},
            {'date': '2024-01-02', 'channel': 'Facebook', 'spend': 250.5},
        ]

    def test_cells_beyond_header_are_ignored(self):
        headers, rows = parse_csv(
            'date,channel,spend\n'
            '2024-01-01,A,100\n'
            '2024-01-02,A,100,extra\n'
        )

        assert headers == ['date', 'channel', 'spend']
        assert rows == [
            {'date': '2024-01-01', 'channel': 'A', 'spend': 100.0},
            {'date': '2024-01-02', 'channel': 'A', 'spend': 100.0},
        ]

    def test_ragged_first_row_is_not_used_as_index(self):
        _, rows = parse_csv('channel,spend\nA,100,extra,more\nB,50\n')
        assert rows == [
            {'channel': 'A', 'spend': 100.0},
            {'channel': 'B', 'spend': 50.0},
        ]

    def test_missing_cells_become_empty(self):
        _, rows = parse_csv('channel,spend,clicks\nGoogle Ads,100\n')
        assert rows == [{'channel': 'Google Ads', 'spend': 100.0, 'clicks': ''}]

    def test_whitespace_only_text_is_empty(self):
        with pytest.raises(UploadValidationError, match='Empty file'):
            parse_csv('\n  \n')


# =============================================================================
# Test Class: TestParseUpload
# =============================================================================

class TestParseUpload:

    def test_csv_upload(self):
        result = parse_upload('Marketing.CSV', b'channel,spend\nGoogle Ads,1000\n')

        assert result.fileType == FileType.CSV
        assert result.rowCount == 1
        assert result.filename == 'Marketing.CSV'
        assert result.data == [{'channel': 'Google Ads', 'spend': 1000.0}]

    def test_utf8_bom_is_stripped(self):
        result = parse_upload('data.csv', b'\xef\xbb\xbfchannel,spend\nX,1\n')
        assert result.headers == ['channel', 'spend']

    def test_excel_upload(self):
        content = _workbook_bytes([
            ['date', 'channel', 'spend'],
            [datetime(2024, 1, 1), 'Google Ads', 1000],
            [datetime(2024, 1, 2), 'Facebook', 250.5],
        ])
        result = parse_upload('marketing.xlsx', content)

        assert result.fileType == FileType.EXCEL
        assert result.headers == ['date', 'channel', 'spend']
        assert result.data[0] == {'date': '2024-01-01', 'channel': 'Google Ads', 'spend': 1000.0}
        assert result.rowCount == 2

    def test_excel_header_only_is_empty(self):
        with pytest.raises(UploadValidationError, match='Empty file'):
            parse_upload('marketing.xlsx', _workbook_bytes([['date', 'spend']]))

    def test_empty_content(self):
        with pytest.raises(UploadValidationError, match='Empty file'):
            parse_upload('data.csv', b'')

    def test_header_only_csv_is_empty(self):
        with pytest.raises(UploadValidationError, match='Empty file'):
            parse_upload('data.csv', b'date,channel,spend\n')

    @pytest.mark.parametrize("filename", ['notes.txt', 'data.json', 'no_extension'])
    def test_unsupported_file_type(self, filename):
        with pytest.raises(UploadValidationError, match='Unsupported file type'):
            parse_upload(filename, b'a,b\n1,2\n')

    def test_allowed_extensions_are_configurable(self):
        with pytest.raises(UploadValidationError, match='Unsupported file type'):
            parse_upload('data.xlsx', b'x', allowed_extensions=['csv'])

    def test_file_extension(self):
        assert file_extension('report.final.XLSX') == 'xlsx'
        assert file_extension('README') == ''


# =============================================================================
# Test Class: TestUploadCache
# =============================================================================

class TestUploadCache:

    @pytest.fixture
    def parsed(self):
        return parse_upload('data.csv', b'channel,spend\nX,1\n')

    @pytest.fixture
    def clock(self, monkeypatch):
        now = SimpleNamespace(value=1000.0)
        monkeypatch.setattr(ingestion, 'time', SimpleNamespace(monotonic=lambda: now.value))
        return now

    def test_key_is_filename_and_size(self):
        assert UploadCache.make_key('data.csv', 42) == 'data.csv-42'

    def test_get_returns_stored_value(self, upload_cache, parsed):
        upload_cache.set('data.csv-19', parsed)

        assert upload_cache.get('data.csv-19') == parsed
        assert upload_cache.get('other.csv-19') is None
        assert len(upload_cache) == 1

    def test_entries_expire_after_ttl(self, upload_cache, parsed, clock):
        upload_cache.set('data.csv-19', parsed)

        clock.value += 299
        assert upload_cache.get('data.csv-19') == parsed

        clock.value += 1
        assert upload_cache.get('data.csv-19') is None
        assert len(upload_cache) == 0

    def test_clear(self, upload_cache, parsed):
        upload_cache.set('a', parsed)
        upload_cache.set('b', parsed)
        upload_cache.clear()
        assert len(upload_cache) == 0
