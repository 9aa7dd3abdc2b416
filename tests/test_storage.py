# tests/test_storage.py
from datetime import date
from decimal import Decimal

import pytest

from salestrend.aggregator import MonthlyAggregator
from salestrend.domain import Transaction
from salestrend.exceptions import NotFound
from salestrend.models import MonthlySalesData, SalesTransaction


def txn(month, day, price="10.00", quantity=1, year=2025, product="Widget"):
    return Transaction(date(year, month, day), product, "Hardware", "North", Decimal(price), quantity)


@pytest.fixture
def seeded(store):
    aggregator = MonthlyAggregator(store)
    aggregator.ingest(1, [txn(1, 3), txn(1, 20, "15.00"), txn(2, 1), txn(3, 9)])
    aggregator.ingest(1, [txn(12, 5, year=2024)])
    aggregator.ingest(2, [txn(1, 3)])
    return store


def test_list_summaries_newest_first(seeded):
    summaries = seeded.list_summaries(1)
    assert [(s.year, s.month) for s in summaries] == [(2025, 3), (2025, 2), (2025, 1), (2024, 12)]

def test_list_summaries_filters(seeded):
    assert [s.month for s in seeded.list_summaries(1, year=2025, month=2)] == [2]
    assert [s.year for s in seeded.list_summaries(1, year=2024)] == [2024]
    assert seeded.list_summaries(3) == []

def test_monthly_series_is_chronological(seeded):
    assert [(s.year, s.month) for s in seeded.monthly_series(1)] == [(2024, 12), (2025, 1), (2025, 2), (2025, 3)]

def test_get_month_returns_transactions(seeded):
    summary = seeded.get_month(1, 2025, 1)

    assert summary.total_revenue == Decimal("25.00")
    assert len(summary.transactions) == 2

def test_month_transactions_latest_first(seeded):
    assert [t.sale_date.day for t in seeded.month_transactions(1, 2025, 1)] == [20, 3]

def test_missing_month_raises_not_found(seeded):
    with pytest.raises(NotFound):
        seeded.get_month(1, 2023, 5)
    with pytest.raises(NotFound):
        seeded.month_transactions(1, 2023, 5)
    with pytest.raises(NotFound) as excinfo:
        seeded.delete_month(1, 2023, 5)
    assert (excinfo.value.year, excinfo.value.month) == (2023, 5)

def test_delete_month_removes_summary_and_transactions(seeded):
    seeded.delete_month(1, 2025, 1)

    assert [s.month for s in seeded.list_summaries(1, year=2025)] == [3, 2]
    with pytest.raises(NotFound):
        seeded.month_transactions(1, 2025, 1)

    with seeded.session_scope() as session:
        months = session.query(MonthlySalesData).filter_by(user_id=1).count()
        orphans = session.query(SalesTransaction).filter_by(user_id=1).count()
    assert months == 3
    assert orphans == 3

    # other users are untouched
    assert seeded.get_month(2, 2025, 1).total_transactions == 1

def test_raw_snapshot_is_stored(seeded):
    with seeded.session_scope() as session:
        row = session.query(MonthlySalesData).filter_by(user_id=1, year=2025, month=1).one()
        raw = row.raw_data
    assert [r["date"] for r in raw] == ["2025-01-03", "2025-01-20"]
    assert raw[1]["price"] == "15.00"

def test_revenue_by_groups_and_sorts(store):
    MonthlyAggregator(store).ingest(1, [
        txn(1, 1, "5.00", product="Pen"),
        txn(1, 2, "50.00", product="Lamp"),
        txn(1, 3, "7.00", product="Pen"),
    ])

    assert store.revenue_by(1, "product_name") == [("Lamp", Decimal("50.00")), ("Pen", Decimal("12.00"))]
