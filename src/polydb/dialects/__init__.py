"""Engine dialects.

Importing this package registers the MySQL, PostgreSQL and Redis
dialects in the global registry.
"""

from polydb.dialects import mysql, postgres, redis  # noqa: F401
from polydb.dialects.base import Dialect, DialectRegistry, registry


def get_dialect(engine: str) -> Dialect:
    return registry.get(engine)


__all__ = ["Dialect", "DialectRegistry", "get_dialect", "registry"]
