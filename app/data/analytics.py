"""
Client-side aggregation for the dashboard, expenses and finance pages.

Records are loaded into pandas frames and grouped there; the ChartPoint
lists the pages consume are a projection of those frames. Everything is a
pure function over already-loaded records so charts can be rebuilt on every
rerun without touching the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Optional

import pandas as pd

from data.models import Animal, ChartPoint, Expense, Income

ALL_MONTHS = -1


def _amount_frame(rows: Iterable, label: str = "category") -> pd.DataFrame:
    """amount/date frame (plus one label column) for expenses or income; missing dates become NaT."""
    rows = list(rows)
    return pd.DataFrame({
        label: [getattr(r, label, "") or "" for r in rows],
        "amount": pd.Series([float(r.amount) for r in rows], dtype="float64"),
        "date": pd.to_datetime(pd.Series([r.date for r in rows], dtype="object")),
    })


def _points(series: pd.Series) -> List[ChartPoint]:
    return [ChartPoint(name=str(k), amount=float(v)) for k, v in series.items()]


def _day_total(df: pd.DataFrame, on: date) -> float:
    return float(df.loc[df["date"].dt.date == on, "amount"].sum())


def _month_total(df: pd.DataFrame, on: date) -> float:
    in_month = (df["date"].dt.year == on.year) & (df["date"].dt.month == on.month)
    return float(df.loc[in_month, "amount"].sum())


def _same_month(when: Optional[datetime], on: date) -> bool:
    return when is not None and (when.year, when.month) == (on.year, on.month)


def filter_expenses(expenses: Iterable[Expense], year: int, month: int = ALL_MONTHS) -> List[Expense]:
    """Expenses dated in `year`, and in `month` (1-12) unless month is ALL_MONTHS."""
    return [
        e for e in expenses
        if e.date is not None and e.date.year == year and (month == ALL_MONTHS or e.date.month == month)
    ]


@dataclass
class ExpenseAnalytics:
    total: float = 0.0
    average: float = 0.0
    by_category: List[ChartPoint] = field(default_factory=list)
    monthly: List[ChartPoint] = field(default_factory=list)
    highest_category: Optional[ChartPoint] = None


def expense_analytics(expenses: Iterable[Expense]) -> ExpenseAnalytics:
    df = _amount_frame(expenses)
    if df.empty:
        return ExpenseAnalytics()

    # sort=False keeps first-seen category order; idxmax then lets the first category win a tie
    by_category = df[df["category"] != ""].groupby("category", sort=False)["amount"].sum()
    dated = df.dropna(subset=["date"])
    monthly = dated.groupby(dated["date"].dt.to_period("M"))["amount"].sum().sort_index()

    highest = None
    if not by_category.empty:
        top = by_category.idxmax()
        highest = ChartPoint(name=top, amount=float(by_category[top]))
    return ExpenseAnalytics(
        total=float(df["amount"].sum()),
        average=float(df["amount"].mean()),
        by_category=_points(by_category),
        monthly=_points(monthly),
        highest_category=highest,
    )


@dataclass
class FinanceStatistics:
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    daily_income: float = 0.0
    daily_expenses: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    highest_sale: Optional[Income] = None
    recent_sales: List[Income] = field(default_factory=list)


def finance_statistics(income: Iterable[Income], expenses: Iterable[Expense], on: date) -> FinanceStatistics:
    income = list(income)
    inc = _amount_frame(income, label="type")
    exp = _amount_frame(expenses)
    total_income = float(inc["amount"].sum())
    total_expenses = float(exp["amount"].sum())

    highest = None
    if not inc.empty and inc["amount"].max() > 0:
        highest = income[int(inc["amount"].idxmax())]

    return FinanceStatistics(
        total_income=total_income,
        total_expenses=total_expenses,
        net_profit=total_income - total_expenses,
        daily_income=_day_total(inc, on),
        daily_expenses=_day_total(exp, on),
        monthly_income=_month_total(inc, on),
        monthly_expenses=_month_total(exp, on),
        highest_sale=highest,
        recent_sales=sorted(income, key=lambda i: i.date or datetime.min, reverse=True)[:10],
    )


@dataclass
class DashboardStats:
    total_animals: int = 0
    animals_by_type: List[ChartPoint] = field(default_factory=list)
    daily_expenses: float = 0.0
    monthly_income: float = 0.0
    monthly_expenses: float = 0.0
    monthly_profit: float = 0.0
    last_7_days: List[ChartPoint] = field(default_factory=list)
    recent_expenses: List[Expense] = field(default_factory=list)


def dashboard_stats(animals: Iterable[Animal], expenses: Iterable[Expense], today: date) -> DashboardStats:
    """
    Headline numbers for the dashboard.

    Monthly income is what animals sold this month fetched; the 7-day series
    always has one point per day (today included), zero-filled and sorted.
    """
    animals = list(animals)
    expenses = list(expenses)
    exp = _amount_frame(expenses)

    herd = pd.DataFrame({"type": [a.type or "Unknown" for a in animals]}, dtype="object")
    by_type = herd.groupby("type", sort=False).size()
    monthly_income = sum(a.selling_price or 0 for a in animals if a.status == "sold" and _same_month(a.sold_date, today))
    monthly_expenses = _month_total(exp, today)

    week = pd.date_range(end=pd.Timestamp(today), periods=7, freq="D")
    dated = exp.dropna(subset=["date"])
    daily = dated.groupby(dated["date"].dt.normalize())["amount"].sum().reindex(week, fill_value=0.0)
    daily.index = daily.index.strftime("%Y-%m-%d")

    this_month = [e for e in expenses if _same_month(e.date, today)]
    return DashboardStats(
        total_animals=len(animals),
        animals_by_type=_points(by_type),
        daily_expenses=_day_total(exp, today),
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_profit=monthly_income - monthly_expenses,
        last_7_days=_points(daily),
        recent_expenses=sorted(this_month, key=lambda e: e.date, reverse=True)[:5],
    )


def points_frame(points: Iterable[ChartPoint], label: str = "name", value: str = "amount") -> pd.DataFrame:
    """ChartPoints -> two-column DataFrame for plotly."""
    df = pd.DataFrame([p.model_dump() for p in points], columns=["name", "amount"])
    return df.rename(columns={"name": label, "amount": value})


def records_frame(records: Iterable, columns: List[str]) -> pd.DataFrame:
    """Models -> DataFrame restricted to `columns` (snake_case attribute names)."""
    rows = [{c: getattr(r, c, None) for c in columns} for r in records]
    return pd.DataFrame(rows, columns=columns)
