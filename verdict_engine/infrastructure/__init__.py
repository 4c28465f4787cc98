"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from core/ domain logic beyond types and errors
    - All external calls wrapped with timeout/error mapping

Design Decisions:
    - Thin wrappers over raw clients; retry/fallback policy belongs to services/
"""
