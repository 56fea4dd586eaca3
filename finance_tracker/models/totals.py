"""
Derived Totals

Output of the aggregation engine. These are never persisted: they are
recomputed from the Year Record after every mutation.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class MonthlyTotals(BaseModel):
    """Rollup of one month. category_totals follows the record's category order."""

    month_index: int = Field(..., ge=0, le=11)
    category_totals: list[Decimal] = Field(default_factory=list)
    total_expenditure: Decimal = Decimal("0")
    income: Decimal = Decimal("0")
    gross_savings: Decimal = Decimal("0")


class DerivedTotals(BaseModel):
    """
    Monthly and yearly rollups of a Year Record.

    INVARIANTS:
    - total_expenditure == sum(category_totals)
                        == sum(m.total_expenditure for m in monthly_totals)
    - gross_savings == total_income - total_expenditure
    """

    monthly_totals: list[MonthlyTotals] = Field(
        ...,
        min_length=12,
        max_length=12,
        description="One entry per month, January first"
    )
    category_totals: list[Decimal] = Field(
        default_factory=list,
        description="Yearly total per category, in category order"
    )
    total_expenditure: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    gross_savings: Decimal = Decimal("0")
