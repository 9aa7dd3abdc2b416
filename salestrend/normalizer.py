# salestrend/normalizer.py
"""
Row normalization: loosely typed spreadsheet/CSV/manual rows in,
tagged Transaction | Rejected outcomes out. No I/O.
"""
from __future__ import annotations
import math
import numbers
import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from .domain import (
    DEFAULT_CATEGORY,
    DEFAULT_PRODUCT,
    DEFAULT_REGION,
    NormalizationResult,
    Outcome,
    Rejected,
    Transaction,
)

# Spreadsheet serial day 1 is 1900-01-01; the epoch absorbs the 1900 leap-year bug
SPREADSHEET_EPOCH = date(1899, 12, 30)
# Numbers at or below this are not treated as serial dates
MIN_SERIAL_DAY = 1000
# 9999-12-31, the last day a date can hold
MAX_SERIAL_DAY = 2958465
SERIAL_TEXT = re.compile(r"^\d+(\.\d+)?$")

CENT = Decimal("0.01")

# Column limits of sales_transactions: price Numeric(12, 2), quantity Integer,
# total_amount Numeric(14, 2)
MAX_PRICE = Decimal("9999999999.99")
MAX_QUANTITY = 2**31 - 1
MAX_AMOUNT = Decimal("999999999999.99")

# header substring -> canonical field; an exact header wins over a substring match
FIELD_PATTERNS = {
    "date": ("date",),
    "price": ("price",),
    "quantity": ("qty", "quantity"),
    "product": ("product",),
    "category": ("category",),
    "region": ("region",),
}


def _find_field(row: Mapping[str, Any], name: str, patterns: Iterable[str]) -> Optional[str]:
    lowered = {key: str(key).strip().lower() for key in row.keys()}
    for key, header in lowered.items():
        if header == name or header in patterns:
            return key
    for key, header in lowered.items():
        if any(p in header for p in patterns):
            return key
    return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT:
        return True
    return isinstance(value, str) and value.strip() == ""


def _from_serial(days) -> Optional[date]:
    # NaN fails both comparisons
    if not MIN_SERIAL_DAY < days <= MAX_SERIAL_DAY:
        return None
    return SPREADSHEET_EPOCH + timedelta(days=int(days))


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a date from ISO strings, spreadsheet serial numbers, date objects
    or loose strings using '.' or '/' separators. Returns None if unparseable.
    """
    if _is_blank(value):
        return None

    if isinstance(value, datetime):  # also covers pandas.Timestamp
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return _from_serial(value)

    if isinstance(value, str):
        # CSV cells arrive as text, "45667" is still a serial day
        if SERIAL_TEXT.match(value.strip()):
            serial = _from_serial(float(value))
            if serial is not None:
                return serial
        clean = re.sub(r"[./]", "-", value.strip())
        # "2025-01-10" and "2025-01-10T08:00:00" need no guessing
        try:
            return datetime.fromisoformat(clean).date()
        except ValueError:
            pass
        try:
            parsed = pd.to_datetime(clean, errors="coerce")
        except (OverflowError, ValueError):
            return None
        if pd.isna(parsed):
            return None
        return parsed.date()

    return None


class OutOfRange(ValueError):
    """A number that parses but does not fit the storage columns."""


def parse_price(value: Any) -> Optional[Decimal]:
    """
    Decimal price rounded to cents; blank is 0. Returns None if unparseable.

    Raises:
        OutOfRange: beyond MAX_PRICE in either direction
    """
    if _is_blank(value):
        return Decimal("0.00")
    if isinstance(value, bool):
        return None
    try:
        price = Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        return None
    if not price.is_finite():
        return None
    if price.copy_abs() > MAX_PRICE:
        raise OutOfRange(value)
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_quantity(value: Any) -> Optional[int]:
    """
    Coerce to int; fractional quantities are not valid.

    Raises:
        OutOfRange: beyond MAX_QUANTITY in either direction
    """
    if _is_blank(value):
        return 0
    if isinstance(value, bool):
        return None
    try:
        qty = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not qty.is_finite():
        return None
    # checked before int() so "1e400" never becomes a huge int
    if qty.copy_abs() > MAX_QUANTITY:
        raise OutOfRange(value)
    if qty != qty.to_integral_value():
        return None
    return int(qty)


def _text(value: Any, default: str) -> str:
    if _is_blank(value):
        return default
    return str(value).strip()


def normalize_row(row: Mapping[str, Any], row_index: int = 0) -> Outcome:
    fields = {name: _find_field(row, name, pats) for name, pats in FIELD_PATTERNS.items()}

    def get(name: str) -> Any:
        key = fields[name]
        return row.get(key) if key is not None else None

    reasons: List[str] = []

    sale_date = parse_date(get("date"))
    if sale_date is None:
        reasons.append("missing_date" if _is_blank(get("date")) else "invalid_date")

    try:
        price = parse_price(get("price"))
    except OutOfRange:
        price = None
        reasons.append("price_out_of_range")
    else:
        if price is None:
            reasons.append("invalid_price")
        elif price < 0:
            reasons.append("negative_price")

    try:
        quantity = parse_quantity(get("quantity"))
    except OutOfRange:
        quantity = None
        reasons.append("quantity_out_of_range")
    else:
        if quantity is None:
            reasons.append("invalid_quantity")
        elif quantity < 0:
            reasons.append("negative_quantity")

    if not reasons and price * quantity > MAX_AMOUNT:
        reasons.append("amount_out_of_range")

    if reasons:
        return Rejected(row_index=row_index, raw=dict(row), reasons=reasons)

    return Transaction(
        sale_date=sale_date,
        product=_text(get("product"), DEFAULT_PRODUCT),
        category=_text(get("category"), DEFAULT_CATEGORY),
        region=_text(get("region"), DEFAULT_REGION),
        price=price,
        quantity=quantity,
    )


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> NormalizationResult:
    """Normalize every row; bad rows become Rejected outcomes, never exceptions."""
    outcomes: List[Outcome] = [normalize_row(row, i) for i, row in enumerate(rows)]
    return NormalizationResult(outcomes=outcomes)


def normalize_frame(df: pd.DataFrame) -> NormalizationResult:
    records: List[Dict[str, Any]] = df.to_dict(orient="records")
    return normalize_rows(records)
