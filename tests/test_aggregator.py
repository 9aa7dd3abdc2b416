# tests/test_aggregator.py
from datetime import date
from decimal import Decimal

import pytest

from salestrend.aggregator import (
    MonthlyAggregator,
    dominant_category,
    group_by_month,
    merge_transactions,
    summarize_month,
)
from salestrend.domain import Transaction
from salestrend.exceptions import StorageFailure
from salestrend.normalizer import normalize_rows


def txn(day, price, quantity, product="Widget", category="Hardware", month=1, year=2025):
    return Transaction(
        sale_date=date(year, month, day),
        product=product,
        category=category,
        region="North",
        price=Decimal(str(price)).quantize(Decimal("0.01")),
        quantity=quantity,
    )


# --- pure helpers ---

def test_group_by_month_buckets_by_year_and_month():
    groups = group_by_month([txn(1, 10, 1), txn(2, 10, 1, month=2), txn(3, 10, 1), txn(1, 10, 1, year=2024)])

    assert sorted(groups) == [(2024, 1), (2025, 1), (2025, 2)]
    assert len(groups[(2025, 1)]) == 2

def test_merge_skips_already_stored_identity():
    stored = [txn(1, 100, 5)]
    incoming = [txn(1, 100, 5, category="Other"), txn(2, 100, 5)]

    merged = merge_transactions(stored, incoming)

    # identity ignores category and region
    assert merged == [txn(1, 100, 5), txn(2, 100, 5)]

def test_merge_dedups_within_incoming_batch():
    assert merge_transactions([], [txn(1, 100, 5), txn(1, 100, 5)]) == [txn(1, 100, 5)]

def test_dominant_category_ties_go_to_first_seen():
    assert dominant_category([txn(1, 1, 1, category="B"), txn(2, 1, 1, category="A"),
                              txn(3, 1, 1, category="A"), txn(4, 1, 1, category="B")]) == "B"
    assert dominant_category([txn(1, 1, 1, category="B"), txn(2, 1, 1, category="A"),
                              txn(3, 1, 1, category="A")]) == "A"
    assert dominant_category([]) == "General"

def test_summarize_month_recomputes_from_set():
    summary = summarize_month(1, 2025, 1, [txn(1, 100, 2), txn(2, 50, 1), txn(3, 10.5, 2, category="Books")])

    assert summary.total_revenue == Decimal("271.00")
    assert summary.total_transactions == 3
    assert summary.avg_transaction_value == Decimal("90.33")
    assert summary.top_category == "Hardware"
    assert summary.label == "Jan 2025"

def test_summarize_empty_month_has_zero_average():
    summary = summarize_month(1, 2025, 1, [])

    assert summary.total_revenue == Decimal("0.00")
    assert summary.total_transactions == 0
    assert summary.avg_transaction_value == Decimal("0.00")


# --- against storage ---

def test_exact_duplicate_rows_count_once(store):
    rows = [
        {"date": "2025-01-10", "price": 100, "quantity": 5},
        {"date": "2025-01-10", "price": 100, "quantity": 5},
    ]
    summaries = MonthlyAggregator(store).ingest(1, normalize_rows(rows).transactions)

    assert len(summaries) == 1
    jan = summaries[0]
    assert (jan.year, jan.month) == (2025, 1)
    assert jan.total_revenue == Decimal("500.00")
    assert jan.total_transactions == 1

def test_reingesting_same_batch_is_idempotent(store, january_rows):
    aggregator = MonthlyAggregator(store)
    batch = normalize_rows(january_rows).transactions

    first = aggregator.ingest(1, batch)
    second = aggregator.ingest(1, batch)

    assert first == second
    assert store.list_summaries(1) == first
    assert len(store.month_transactions(1, 2025, 1)) == 3

def test_split_ingest_equals_single_ingest(store):
    aggregator = MonthlyAggregator(store)
    part_a = [txn(1, 100, 2), txn(5, 20, 1, category="Books")]
    part_b = [txn(9, 75, 3), txn(15, 20, 1, product="Pen", category="Books")]

    aggregator.ingest(1, part_a)
    split = aggregator.ingest(1, part_b)
    together = aggregator.ingest(2, part_a + part_b)

    assert [(s.total_revenue, s.total_transactions, s.avg_transaction_value, s.top_category) for s in split] == \
        [(s.total_revenue, s.total_transactions, s.avg_transaction_value, s.top_category) for s in together]

def test_stored_revenue_matches_stored_transactions(store, january_rows):
    aggregator = MonthlyAggregator(store)
    aggregator.ingest(1, normalize_rows(january_rows).transactions)
    aggregator.ingest(1, [txn(28, 33.33, 3, product="Extra")])

    summary = store.get_month(1, 2025, 1)
    stored = store.month_transactions(1, 2025, 1)

    assert summary.total_revenue == sum(t.amount for t in stored)
    assert summary.total_transactions == len(stored) == 4
    assert summary.avg_transaction_value == (summary.total_revenue / 4).quantize(Decimal("0.01"))

def test_ingest_touching_several_months(store):
    summaries = MonthlyAggregator(store).ingest(1, [txn(3, 10, 1, month=3), txn(1, 10, 1), txn(2, 10, 2, month=2)])

    assert [(s.year, s.month) for s in summaries] == [(2025, 1), (2025, 2), (2025, 3)]
    assert [s.month for s in store.list_summaries(1)] == [3, 2, 1]

def test_ingest_nothing_returns_nothing(store):
    assert MonthlyAggregator(store).ingest(1, []) == []

def test_storage_failure_rolls_back_whole_batch(store, monkeypatch):
    aggregator = MonthlyAggregator(store)
    aggregator.ingest(1, [txn(1, 100, 1)])

    original_save = store.save_month

    def failing_save(session, summary):
        if summary.month == 2:
            raise RuntimeError("disk full")
        original_save(session, summary)

    monkeypatch.setattr(store, "save_month", failing_save)

    with pytest.raises(StorageFailure) as excinfo:
        aggregator.ingest(1, [txn(2, 200, 1), txn(3, 50, 1, month=2)])

    assert (excinfo.value.year, excinfo.value.month) == (2025, 2)
    assert "disk full" in str(excinfo.value)

    # January keeps its pre-call state and February never appears
    summaries = store.list_summaries(1)
    assert [(s.month, s.total_revenue, s.total_transactions) for s in summaries] == [(1, Decimal("100.00"), 1)]
    assert len(store.month_transactions(1, 2025, 1)) == 1
