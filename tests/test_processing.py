# tests/test_processing.py
import os
import tempfile
from datetime import date

import pytest
from sqlalchemy import text

from salestrend.database import make_engine
from salestrend.exceptions import InputRejected
from salestrend.flows import ingest_csv_file
from salestrend.normalizer import normalize_rows
from salestrend.processing import process_csv_to_db, validate_csv_format
from salestrend.sample_data import generate_sales_rows, write_sales_csv
from salestrend.storage import SalesStore

CSV_CONTENT = (
    "date,product,category,region,price,quantity\n"
    "2025-01-15,Widget,Hardware,North,100.50,2\n"
    "2025-01-16,Gadget,Hardware,South,20.00,1\n"
    "2025-02-01,Manual,Books,East,15.00,3\n"
    "not-a-date,Broken,Books,East,15.00,3\n"
)


def test_process_csv_to_db_success(engine):
    stats = process_csv_to_db(CSV_CONTENT.encode("utf-8"), 1, engine)

    assert stats.total_rows == 4
    assert stats.accepted_rows == 3
    assert stats.rejected_rows == 1
    assert stats.months_updated == 2

    jan = SalesStore(engine).get_month(1, 2025, 1)
    assert float(jan.total_revenue) == 221.0
    assert jan.total_transactions == 2

def test_csv_duplicates_are_counted_once(engine):
    csv_content = (
        "Sale Date,Product Name,Unit Price,Qty\n"
        "2025-01-10,Widget,100,5\n"
        "2025-01-10,Widget,100,5\n"
    )

    process_csv_to_db(csv_content.encode("utf-8"), 1, engine)
    # uploading the same file again changes nothing
    process_csv_to_db(csv_content.encode("utf-8"), 1, engine)

    with engine.connect() as conn:
        count = conn.execute(text("SELECT COUNT(*) FROM sales_transactions")).scalar()
    assert count == 1

    jan = SalesStore(engine).get_month(1, 2025, 1)
    assert float(jan.total_revenue) == 500.0
    assert jan.total_transactions == 1

def test_corrupt_csv_columns(engine):
    csv_content = b"product,price\nWidget,100"

    with pytest.raises(InputRejected) as excinfo:
        process_csv_to_db(csv_content, 1, engine)

    assert "missing required columns" in str(excinfo.value).lower()
    assert "date" in str(excinfo.value)

def test_validate_csv_format():
    validate_csv_format(CSV_CONTENT.encode("utf-8"))

    with pytest.raises(InputRejected, match="missing required columns: quantity"):
        validate_csv_format(b"date,price\n2025-01-01,10")

    with pytest.raises(InputRejected, match="Invalid CSV format"):
        validate_csv_format(b"")

def test_ingest_task_with_file_database(tmp_path):
    database_url = f"sqlite:///{tmp_path / 'sales.db'}"

    fd, path = tempfile.mkstemp(suffix=".csv")
    try:
        with os.fdopen(fd, 'w') as f:
            f.write(CSV_CONTENT)

        # Call the underlying function (.fn extracts it from the Prefect @task wrapper)
        stats = ingest_csv_file.fn(file_path=path, user_id=7, database_url=database_url)

        assert stats == {"total_rows": 4, "accepted_rows": 3, "rejected_rows": 1, "months_updated": 2}

        check_engine = make_engine(database_url)
        try:
            assert [s.month for s in SalesStore(check_engine).list_summaries(7)] == [2, 1]
        finally:
            check_engine.dispose()
    finally:
        os.remove(path)

def test_generated_rows_are_all_valid(tmp_path):
    rows = generate_sales_rows(200, start_date=date(2024, 1, 1), end_date=date(2024, 12, 31), seed=3)

    assert rows == generate_sales_rows(200, start_date=date(2024, 1, 1), end_date=date(2024, 12, 31), seed=3)

    result = normalize_rows(rows)
    assert result.report.rejected_rows == 0
    assert all(date(2024, 1, 1) <= t.sale_date <= date(2024, 12, 31) for t in result.transactions)

    path = write_sales_csv(tmp_path / "sample.csv", rows)
    validate_csv_format(path.read_bytes())

def test_csv_serial_dates_are_accepted(engine):
    stats = process_csv_to_db(b"date,price,quantity\n45667,10,1\n", 1, engine)

    assert stats.accepted_rows == 1
    assert SalesStore(engine).month_transactions(1, 2025, 1)[0].sale_date == date(2025, 1, 10)
