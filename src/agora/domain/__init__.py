"""Domain layer for agora.

Contains business rules: aggregates, value objects, domain events and derived
dashboard metrics. This package is deliberately technology-agnostic and performs
no I/O.

Dependency rule: do not import from `agora.adapters` or `agora.entrypoints`.
"""
