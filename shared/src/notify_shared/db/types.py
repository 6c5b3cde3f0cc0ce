"""JSON column that uses JSONB on PostgreSQL and plain JSON elsewhere (SQLite in tests)."""

import sqlalchemy as sa
from sqlalchemy.types import TypeDecorator


class JSONBCompatible(TypeDecorator):
    """Stores payloads, overrides and credentials as JSON documents."""

    impl = sa.JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: sa.Dialect) -> sa.types.TypeEngine:
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import JSONB

            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(sa.JSON())
