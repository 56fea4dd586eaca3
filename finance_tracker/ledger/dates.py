"""
Calendar helpers.

Weeks here are "calendar weeks within month": week 0 is days 1-7,
week 1 days 8-14 and so on. Days 29-31 form a partial week 4.
This is not ISO week numbering.
"""

import calendar
import math

MONTHS = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

WEEKS_PER_MONTH = 5
DAYS_PER_WEEK = 7


def days_in_month(year: int, month_index: int) -> int:
    """Gregorian length of a 0-indexed month (leap years included)."""
    return calendar.monthrange(year, month_index + 1)[1]


def week_of_month(day_of_month: int) -> int:
    """0-indexed week of a day, clamped to [0, 4]."""
    week = (day_of_month - 1) // DAYS_PER_WEEK
    return max(0, min(week, WEEKS_PER_MONTH - 1))


def weeks_in_month(year: int, month_index: int) -> int:
    return math.ceil(days_in_month(year, month_index) / DAYS_PER_WEEK)


def days_of_week(year: int, month_index: int, week_index: int) -> list[int]:
    """Days of the month belonging to a week; empty past the month's end."""
    start = week_index * DAYS_PER_WEEK + 1
    end = min(start + DAYS_PER_WEEK - 1, days_in_month(year, month_index))
    return list(range(start, end + 1))
