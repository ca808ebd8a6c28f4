"""Database Infrastructure: SQLAlchemy declarative Base shared by ORM models and Alembic."""
