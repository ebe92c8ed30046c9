"""Adapters implementing the ports in `agora.interfaces`.

In-memory implementations serve tests and the default bootstrap; the
SQLAlchemy ones back a real database.
"""
