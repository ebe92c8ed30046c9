"""Bootstrap (composition root) for agora.

Assembles the application at runtime: wires concrete adapters (engine, unit of
work, ID generator) to the service-layer handlers and builds the message bus.

Import rules:
- Entry points import *this* package (not adapters/service_layer/interfaces/domain).
- This package may import: `agora.adapters`, `agora.service_layer`,
  `agora.interfaces`, `agora.domain`, and `agora.config`.
- Inner layers must not import `agora.bootstrap`.
"""

from .bootstrap import AppContainer, bootstrap, bootstrap_in_memory

__all__ = ["AppContainer", "bootstrap", "bootstrap_in_memory"]
