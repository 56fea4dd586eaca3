"""Aggregation package."""

from finance_tracker.aggregation.engine import (
    aggregate,
    category_totals_for_week,
    daily_totals_for_week,
    income_vs_expenditure,
    total_budget,
    weekly_average_income,
    yearly_breakdown,
)

__all__ = [
    "aggregate",
    "category_totals_for_week",
    "daily_totals_for_week",
    "income_vs_expenditure",
    "total_budget",
    "weekly_average_income",
    "yearly_breakdown",
]
