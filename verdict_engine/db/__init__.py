"""Database Metadata — declarative Base shared by the verdict and prediction models.

Invariants:
    - Engine and sessions live in infrastructure/database.py, never here

Design Decisions:
    - asyncpg driver for PostgreSQL (ADR: native async, no thread pool overhead)
"""
