"""
Aggregation Engine

Pure functions turning a sparse Year Record into the rollups behind the
monthly breakdown table, the income dashboard and the charts.

GUARANTEES:
- Deterministic and side-effect free
- Total over any structurally valid Year Record: missing cells read as 0,
  empty category/source lists give all-zero totals, nothing is divided by
  a count that can be zero
- Cheap enough to rerun after every mutation (12 x categories x 31 reads)

Only days that exist in the record's year are summed, so a stray
Feb 29 cell in a non-leap year never reaches the totals. Cells for
categories no longer listed are ignored the same way.
"""

from decimal import Decimal

from finance_tracker.ledger.dates import (
    MONTHS,
    WEEKS_PER_MONTH,
    days_in_month,
    days_of_week,
)
from finance_tracker.models.totals import DerivedTotals, MonthlyTotals
from finance_tracker.models.year_record import DayKey, WeekKey, YearRecord

ZERO = Decimal("0")


def _month_totals(record: YearRecord, month_index: int) -> MonthlyTotals:
    last_day = days_in_month(record.year, month_index)
    expenses = record.daily_expenses

    category_totals = [
        sum(
            (expenses.get(DayKey(month_index, day, category), ZERO)
             for day in range(1, last_day + 1)),
            ZERO,
        )
        for category in record.categories
    ]
    total_expenditure = sum(category_totals, ZERO)

    income = sum(
        (record.weekly_incomes.get(WeekKey(month_index, week), ZERO)
         for week in range(WEEKS_PER_MONTH)),
        ZERO,
    )

    return MonthlyTotals(
        month_index=month_index,
        category_totals=category_totals,
        total_expenditure=total_expenditure,
        income=income,
        gross_savings=income - total_expenditure,
    )


def aggregate(record: YearRecord) -> DerivedTotals:
    """Compute monthly and yearly rollups of a Year Record."""
    monthly_totals = [_month_totals(record, month) for month in range(len(MONTHS))]

    category_totals = [
        sum((month.category_totals[index] for month in monthly_totals), ZERO)
        for index in range(len(record.categories))
    ]
    total_expenditure = sum(category_totals, ZERO)
    total_income = sum((month.income for month in monthly_totals), ZERO)

    return DerivedTotals(
        monthly_totals=monthly_totals,
        category_totals=category_totals,
        total_expenditure=total_expenditure,
        total_income=total_income,
        gross_savings=total_income - total_expenditure,
    )


# =============================================================================
# DASHBOARD SERIES
# =============================================================================

def yearly_breakdown(record: YearRecord, totals: DerivedTotals) -> list[tuple[str, Decimal]]:
    """(category, yearly total) pairs, categories with no spending left out."""
    return [
        (category, total)
        for category, total in zip(record.categories, totals.category_totals)
        if total > 0
    ]


def income_vs_expenditure(totals: DerivedTotals) -> list[tuple[str, Decimal, Decimal]]:
    """(month abbreviation, income, expenditure) for each month."""
    return [
        (MONTHS[month.month_index][:3], month.income, month.total_expenditure)
        for month in totals.monthly_totals
    ]


def weekly_average_income(record: YearRecord) -> list[tuple[str, Decimal]]:
    """
    Average income of each week slot across the 12 months.

    Always divided by 12, including months with no income.
    Weeks averaging 0 are left out.
    """
    averages = []
    for week in range(WEEKS_PER_MONTH):
        week_sum = sum(
            (record.weekly_incomes.get(WeekKey(month, week), ZERO)
             for month in range(len(MONTHS))),
            ZERO,
        )
        average = week_sum / len(MONTHS)
        if average > 0:
            averages.append((f"Week {week + 1}", average))
    return averages


def total_budget(record: YearRecord) -> Decimal:
    """Planned monthly spending over all categories."""
    return sum(record.budgets.values(), ZERO)


def daily_totals_for_week(
    record: YearRecord,
    month_index: int,
    week_index: int,
) -> list[tuple[int, Decimal]]:
    """(day, spending over all categories) for each day of a week."""
    return [
        (
            day,
            sum(
                (record.daily_expenses.get(DayKey(month_index, day, category), ZERO)
                 for category in record.categories),
                ZERO,
            ),
        )
        for day in days_of_week(record.year, month_index, week_index)
    ]


def category_totals_for_week(
    record: YearRecord,
    month_index: int,
    week_index: int,
) -> list[tuple[str, Decimal]]:
    """(category, spending over the week's days) in category order."""
    days = days_of_week(record.year, month_index, week_index)
    return [
        (
            category,
            sum(
                (record.daily_expenses.get(DayKey(month_index, day, category), ZERO)
                 for day in days),
                ZERO,
            ),
        )
        for category in record.categories
    ]
