# salestrend/storage.py
from __future__ import annotations
import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from .database import make_session_factory
from .domain import MonthlySummary, Transaction
from .exceptions import NotFound
from .models import MonthlySalesData, SalesTransaction

logger = logging.getLogger(__name__)


def _to_transaction(row: SalesTransaction) -> Transaction:
    return Transaction(
        sale_date=row.sale_date,
        product=row.product_name,
        category=row.category,
        region=row.region,
        price=Decimal(row.price),
        quantity=int(row.quantity),
    )


def _to_summary(row: MonthlySalesData, transactions: Tuple[Transaction, ...] = ()) -> MonthlySummary:
    return MonthlySummary(
        user_id=row.user_id,
        year=row.year,
        month=row.month,
        total_revenue=Decimal(row.total_revenue),
        total_transactions=int(row.total_transactions),
        avg_transaction_value=Decimal(row.avg_transaction_value),
        top_category=row.top_category,
        transactions=transactions,
    )


class SalesStore:
    """
    Relational storage for monthly summaries and their transactions.

    The engine (and its connection pool) is owned by the caller; the store
    only opens sessions against it.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = make_session_factory(engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Commit on success, roll back on any error, always release the connection."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ---- month-level read / write used by the aggregator ----

    def _month_row(self, session: Session, user_id: int, year: int, month: int) -> Optional[MonthlySalesData]:
        return session.execute(
            select(MonthlySalesData).where(
                MonthlySalesData.user_id == user_id,
                MonthlySalesData.year == year,
                MonthlySalesData.month == month,
            )
        ).scalar_one_or_none()

    def load_month_transactions(self, session: Session, user_id: int, year: int, month: int) -> List[Transaction]:
        row = self._month_row(session, user_id, year, month)
        if row is None:
            return []
        return [_to_transaction(t) for t in row.transactions]

    def save_month(self, session: Session, summary: MonthlySummary) -> None:
        """Upsert the summary row and replace its transaction set."""
        row = self._month_row(session, summary.user_id, summary.year, summary.month)
        if row is None:
            row = MonthlySalesData(user_id=summary.user_id, year=summary.year, month=summary.month)
            session.add(row)

        row.total_revenue = summary.total_revenue
        row.total_transactions = summary.total_transactions
        row.avg_transaction_value = summary.avg_transaction_value
        row.top_category = summary.top_category
        row.raw_data = summary.raw_snapshot()

        row.transactions.clear()
        session.flush()
        row.transactions.extend(
            SalesTransaction(
                user_id=summary.user_id,
                product_name=t.product,
                sale_date=t.sale_date,
                price=t.price,
                quantity=t.quantity,
                total_amount=t.amount,
                region=t.region,
                category=t.category,
            )
            for t in summary.transactions
        )
        session.flush()

    # ---- reads ----

    def list_summaries(self, user_id: int, year: int = None, month: int = None) -> List[MonthlySummary]:
        """Stored summaries, newest month first."""
        query = select(MonthlySalesData).where(MonthlySalesData.user_id == user_id)
        if year:
            query = query.where(MonthlySalesData.year == year)
        if month:
            query = query.where(MonthlySalesData.month == month)
        query = query.order_by(MonthlySalesData.year.desc(), MonthlySalesData.month.desc())

        with self.session_scope() as session:
            return [_to_summary(row) for row in session.execute(query).scalars()]

    def get_month(self, user_id: int, year: int, month: int) -> MonthlySummary:
        with self.session_scope() as session:
            row = self._month_row(session, user_id, year, month)
            if row is None:
                raise NotFound(user_id, year, month)
            return _to_summary(row, tuple(_to_transaction(t) for t in row.transactions))

    def month_transactions(self, user_id: int, year: int, month: int) -> List[Transaction]:
        """Transactions of one month, latest sale first."""
        with self.session_scope() as session:
            row = self._month_row(session, user_id, year, month)
            if row is None:
                raise NotFound(user_id, year, month)
            rows = session.execute(
                select(SalesTransaction)
                .where(SalesTransaction.monthly_data_id == row.id)
                .order_by(SalesTransaction.sale_date.desc(), SalesTransaction.id.asc())
            ).scalars()
            return [_to_transaction(t) for t in rows]

    def delete_month(self, user_id: int, year: int, month: int) -> None:
        with self.session_scope() as session:
            row = self._month_row(session, user_id, year, month)
            if row is None:
                raise NotFound(user_id, year, month)
            # transactions go with it (delete-orphan cascade)
            session.delete(row)
        logger.info("Deleted monthly data for user %s: %d-%02d", user_id, year, month)

    def monthly_series(self, user_id: int) -> List[MonthlySummary]:
        """Summaries ordered chronologically (oldest first)."""
        query = (
            select(MonthlySalesData)
            .where(MonthlySalesData.user_id == user_id)
            .order_by(MonthlySalesData.year.asc(), MonthlySalesData.month.asc())
        )
        with self.session_scope() as session:
            return [_to_summary(row) for row in session.execute(query).scalars()]

    def revenue_by(self, user_id: int, column: str) -> List[Tuple[str, Decimal]]:
        """Revenue per product_name or category, largest first."""
        key = getattr(SalesTransaction, column)
        value = func.sum(SalesTransaction.total_amount).label("value")
        query = (
            select(key, value)
            .where(SalesTransaction.user_id == user_id)
            .group_by(key)
            .order_by(value.desc(), key.asc())
        )
        with self.session_scope() as session:
            return [(name, Decimal(total or 0)) for name, total in session.execute(query).all()]
