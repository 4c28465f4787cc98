"""Verdict Engine — three-analyst debate that produces a daily consensus top 5.

Invariants:
    - Package root holds only the version string (import side-effects prohibited)

Design Decisions:
    - Explicit imports only, no star exports
"""

__version__ = "1.0.0"
