"""Database plumbing shared by the SQLAlchemy adapters: metadata, column types,
table definitions, engine factory and Alembic migrations."""
