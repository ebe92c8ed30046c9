"""Service layer for agora.

Implements application use-cases: command handlers, domain event handlers,
orchestration, and transaction boundaries. Calls domain objects and the
outbound ports defined in `agora.interfaces`.

Dependency rule: may import `agora.domain` and `agora.interfaces`, but not
`agora.adapters` or `agora.entrypoints`.
"""
