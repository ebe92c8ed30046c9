"""Entrypoints (inbound adapters) for agora.

Expose the application to the outside world. Parse and validate inputs, call
the message bus built by `agora.bootstrap`, and present results.

Dependency rule: may import `agora.bootstrap`, `agora.config` and
`agora.service_layer`; avoid importing `agora.adapters` directly (the `db`
CLI group, which manages the schema itself, is the exception).
"""
