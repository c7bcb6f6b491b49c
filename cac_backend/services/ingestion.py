"""
Upload Ingestion Service

Decodes uploaded CSV and Excel files into raw row dicts for the metrics engine,
and keeps a short-lived cache of parsed uploads.

Parsing rules:
- A header row is required; blank lines are ignored; cells beyond the
  header width are ignored.
- Every cell is trimmed. A cell whose whole text is a number becomes a float,
  anything else stays a string. Missing cells become ''.
- Excel: only the first sheet is read; date cells are rendered as YYYY-MM-DD.

Rejections (raised as UploadValidationError, surfaced as HTTP 400):
- Empty file (no data rows)
- Unsupported file type

The engine never reads the cache; it only saves re-parsing an identical file
(same filename and size) within the TTL.
"""

from datetime import date, datetime
import io
import logging
import re
import threading
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from cac_backend.models.enums import FileType
from cac_backend.models.schemas import RawRow, UploadResponse

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

CSV_EXTENSIONS: Tuple[str, ...] = ('csv',)
EXCEL_EXTENSIONS: Tuple[str, ...] = ('xlsx', 'xls')
DEFAULT_ALLOWED_EXTENSIONS: Tuple[str, ...] = CSV_EXTENSIONS + EXCEL_EXTENSIONS

EXCEL_DATE_FORMAT: str = '%Y-%m-%d'

_NUMERIC_CELL = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$')


class UploadValidationError(ValueError):
    """Raised when an upload is rejected before the engine sees it."""


# =============================================================================
# Cell Coercion
# =============================================================================

def coerce_cell(value: Any) -> Any:
    """
    Normalize one parsed cell.

    Strings are trimmed and turned into floats when the whole text is numeric.
    Dates become YYYY-MM-DD strings; NaN and None become ''.
    """
    if value is None:
        return ''
    if not isinstance(value, str) and pd.isna(value):
        return ''
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.strftime(EXCEL_DATE_FORMAT)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if _NUMERIC_CELL.match(text):
        return float(text)
    return text


def dataframe_to_rows(df: pd.DataFrame) -> Tuple[List[str], List[RawRow]]:
    """Convert a parsed frame into (headers, rows) with coerced cells."""
    headers = [str(column).strip() for column in df.columns]
    rows: List[RawRow] = []
    for record in df.itertuples(index=False, name=None):
        rows.append({
            header: coerce_cell(value)
            for header, value in zip(headers, record)
        })
    return headers, rows


# =============================================================================
# Parsers
# =============================================================================

def parse_csv(text: str) -> Tuple[List[str], List[RawRow]]:
    """
    Parse comma-delimited text with a header row.

    Args:
        text: Decoded file contents

    Returns:
        (headers, rows)

    Raises:
        UploadValidationError: If the text has no header row
    """
    if not text.strip():
        raise UploadValidationError('Empty file')

    try:
        header = pd.read_csv(io.StringIO(text), nrows=0, skipinitialspace=True)
        column_count = len(header.columns)

        # Cells beyond the header are dropped
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
            index_col=False,
            engine='python',
            on_bad_lines=lambda cells: cells[:column_count],
        )
    except pd.errors.EmptyDataError as e:
        raise UploadValidationError('Empty file') from e

    df = df.fillna('')
    headers, rows = dataframe_to_rows(df)
    logger.info(f"Parsed CSV with {len(rows)} rows and {len(headers)} columns")
    return headers, rows


def parse_excel(content: bytes) -> Tuple[List[str], List[RawRow]]:
    """
    Parse the first sheet of an Excel workbook.

    Raises:
        UploadValidationError: If the sheet has no data rows
    """
    df = pd.read_excel(io.BytesIO(content), sheet_name=0, dtype=object)
    df = df.dropna(how='all')

    if df.empty:
        raise UploadValidationError('Empty file')

    headers, rows = dataframe_to_rows(df)
    logger.info(f"Parsed Excel sheet with {len(rows)} rows and {len(headers)} columns")
    return headers, rows


def file_extension(filename: str) -> str:
    """Lower-case extension without the dot, or '' when there is none."""
    if '.' not in filename:
        return ''
    return filename.rsplit('.', 1)[-1].lower()


def parse_upload(
    filename: str,
    content: bytes,
    allowed_extensions: Optional[Sequence[str]] = None
) -> UploadResponse:
    """
    Decode an uploaded file by extension.

    Args:
        filename: Original client filename
        content: Raw file bytes
        allowed_extensions: Accepted extensions (defaults to csv/xlsx/xls)

    Returns:
        UploadResponse with headers, rows and row count

    Raises:
        UploadValidationError: Empty file or unsupported extension
    """
    allowed = {ext.lower() for ext in (allowed_extensions or DEFAULT_ALLOWED_EXTENSIONS)}
    extension = file_extension(filename)

    if extension not in allowed:
        raise UploadValidationError('Unsupported file type')

    if not content:
        raise UploadValidationError('Empty file')

    if extension in CSV_EXTENSIONS:
        headers, rows = parse_csv(content.decode('utf-8-sig'))
        file_type = FileType.CSV
    elif extension in EXCEL_EXTENSIONS:
        headers, rows = parse_excel(content)
        file_type = FileType.EXCEL
    else:
        raise UploadValidationError('Unsupported file type')

    if not rows:
        raise UploadValidationError('Empty file')

    return UploadResponse(
        headers=headers,
        data=rows,
        rowCount=len(rows),
        filename=filename,
        fileType=file_type,
    )


# =============================================================================
# Upload Cache
# =============================================================================

class UploadCache:
    """
    Process-wide TTL cache of parsed uploads keyed by filename and size.

    Expired entries are purged whenever the cache is read or written.
    """

    def __init__(self, ttl_seconds: float = 300):
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[str, Tuple[float, UploadResponse]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(filename: str, size: int) -> str:
        return f"{filename}-{size}"

    def _purge_expired(self, now: float) -> None:
        expired = [
            key for key, (stored_at, _) in self._entries.items()
            if now - stored_at >= self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired upload cache entries")

    def get(self, key: str) -> Optional[UploadResponse]:
        with self._lock:
            self._purge_expired(time.monotonic())
            entry = self._entries.get(key)
            return entry[1] if entry else None

    def set(self, key: str, value: UploadResponse) -> None:
        with self._lock:
            now = time.monotonic()
            self._purge_expired(now)
            self._entries[key] = (now, value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(time.monotonic())
            return len(self._entries)


__all__ = [
    'CSV_EXTENSIONS',
    'EXCEL_EXTENSIONS',
    'DEFAULT_ALLOWED_EXTENSIONS',
    'UploadValidationError',
    'coerce_cell',
    'dataframe_to_rows',
    'parse_csv',
    'parse_excel',
    'file_extension',
    'parse_upload',
    'UploadCache',
]
