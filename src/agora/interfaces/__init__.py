"""Interfaces (application boundary) for agora.

Defines framework-free application contracts: ABCs for repositories, the unit
of work and ID generators, plus the errors their implementations raise.
Business rules stay out of this package.

Dependency rule: this package may import `agora.domain` but nothing else from
`agora.*`. It may be imported by `agora.service_layer`, `agora.adapters`, and
`agora.bootstrap`.
"""
