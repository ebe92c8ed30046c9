"""Repository adapters: in-memory and SQLAlchemy implementations."""
