"""ORM Models: SQLAlchemy declarative models.

All models imported here so Base.metadata is complete before create_all or
an Alembic autogenerate run.
"""

from userapi.models.user import User  # noqa: F401
