"""Salary step progression and eligibility engine.

Materializes due salary step increments for ranked employees, applies
approvals, manual jumps, mass raises and promotions, and keeps an
append-only salary history.
"""

__version__ = "0.1.0"
