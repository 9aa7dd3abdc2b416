# salestrend/models.py
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


class MonthlySalesData(Base):
    """One row per (user, year, month); figures are always recomputed from its transactions."""
    __tablename__ = "monthly_sales_data"
    __table_args__ = (
        UniqueConstraint("user_id", "year", "month", name="uq_user_year_month"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    total_revenue: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    total_transactions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_transaction_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    top_category: Mapped[Optional[str]] = mapped_column(String(100))
    raw_data: Mapped[Optional[list]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    transactions: Mapped[List["SalesTransaction"]] = relationship(
        back_populates="monthly_data",
        cascade="all, delete-orphan",
        order_by="SalesTransaction.id",
    )


class SalesTransaction(Base):
    __tablename__ = "sales_transactions"
    __table_args__ = (
        Index("idx_sales_user_date", "user_id", "sale_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    monthly_data_id: Mapped[int] = mapped_column(
        ForeignKey("monthly_sales_data.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Unknown Product")
    sale_date: Mapped[date] = mapped_column(Date, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    region: Mapped[str] = mapped_column(String(100), nullable=False, default="Unknown")
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="General")

    monthly_data: Mapped[MonthlySalesData] = relationship(back_populates="transactions")
