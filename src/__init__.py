"""
Finance Tracker Store - Source Package

The embedded document store behind a personal finance tracker:
users, transactions and categories persisted to one JSON snapshot.

DESIGN PRINCIPLES:
1. One lock, whole operation: reload -> mutate -> persist is atomic
2. Fail loudly to the caller, never silently drop a write
3. The snapshot on disk is always a complete, valid state
4. Default categories always exist
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Accountant Team"
