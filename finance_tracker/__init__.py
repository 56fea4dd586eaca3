"""
Finance Tracker - Core Package

Client core for a personal finance tracker: one Year Record per
(user, year) holding daily expenses, weekly incomes, budgets and
transaction logs.

DESIGN PRINCIPLES:
1. Rollups are derived, never stored
2. Every transaction is a dual write (log + ledger cell)
3. Persistence is debounced and last-write-wins
4. Background save failures never interrupt the user
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
