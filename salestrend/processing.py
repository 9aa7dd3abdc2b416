# salestrend/processing.py
import io
import logging
from dataclasses import dataclass
from typing import Union

import pandas as pd
from sqlalchemy.engine import Engine

from .exceptions import InputRejected
from .normalizer import FIELD_PATTERNS
from .service import SalesEngine
from .storage import SalesStore

logger = logging.getLogger(__name__)

CHUNK_SIZE = 50_000  # Process 50,000 rows at a time
REQUIRED_FIELDS = ("date", "price", "quantity")


@dataclass
class CsvIngestStats:
    total_rows: int = 0
    accepted_rows: int = 0
    rejected_rows: int = 0
    months_updated: int = 0


def _missing_fields(columns) -> list:
    lowered = [str(c).strip().lower() for c in columns]
    return [
        name for name in REQUIRED_FIELDS
        if not any(p in col for col in lowered for p in FIELD_PATTERNS[name])
    ]


def _read_csv(source: Union[bytes, str], **kwargs):
    if isinstance(source, bytes):
        source = io.StringIO(source.decode("utf-8-sig"))
    # read everything as text; the normalizer does the typing
    return pd.read_csv(source, dtype=str, keep_default_na=False, **kwargs)


def validate_csv_format(file_contents: bytes):
    """
    Validates CSV format and structure without processing the entire file.

    Args:
        file_contents: The CSV file contents as bytes

    Raises:
        InputRejected: If the CSV cannot be read or lacks a date, price or quantity column
    """
    try:
        # Read just the first few rows to validate structure
        sample_df = _read_csv(file_contents, nrows=5)
    except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise InputRejected(f"Invalid CSV format: {e}")

    missing = _missing_fields(sample_df.columns)
    if missing:
        raise InputRejected(f"CSV file is missing required columns: {', '.join(missing)}")


def process_csv_to_db(source: Union[bytes, str], user_id: int, engine: Engine) -> CsvIngestStats:
    """
    Ingests a CSV file chunk by chunk into the user's monthly data.

    Each chunk is merged in its own storage transaction; re-running the same
    file is harmless because already stored transactions are skipped.

    Args:
        source: CSV contents as bytes, or a file path
        user_id: Owner of the sales data
        engine: SQLAlchemy engine for database connection

    Returns:
        CsvIngestStats: row and month counts
    """
    sales = SalesEngine(SalesStore(engine))
    stats = CsvIngestStats()
    months = set()

    for chunk_df in _read_csv(source, chunksize=CHUNK_SIZE):
        missing = _missing_fields(chunk_df.columns)
        if missing:
            raise InputRejected(f"CSV file is missing required columns: {', '.join(missing)}")

        result = sales.merge(user_id, chunk_df.to_dict(orient="records"))
        stats.total_rows += result.report.total_rows
        stats.accepted_rows += result.report.accepted_rows
        stats.rejected_rows += result.report.rejected_rows
        months.update((s.year, s.month) for s in result.summaries)

    stats.months_updated = len(months)
    logger.info(
        "CSV ingest for user %s: %d rows, %d accepted, %d rejected, %d months updated",
        user_id, stats.total_rows, stats.accepted_rows, stats.rejected_rows, stats.months_updated,
    )
    return stats
