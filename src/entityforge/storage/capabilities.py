"""Storage capability probes.

The compiler only asks one question of the storage backend: can a given
table carry a full-text index? :class:`SqlAlchemyCapabilityProbe` answers it
against a live database; :class:`StaticCapabilityProbe` answers it from
configuration, which is what tests and offline builds use.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from entityforge.exceptions import CapabilityProbeError

if TYPE_CHECKING:
    from sqlalchemy.engine.url import URL

logger = logging.getLogger(__name__)

# InnoDB gained FULLTEXT indexes in these releases; MyISAM always had them.
MYSQL_INNODB_FULLTEXT_VERSION = (5, 6, 4)
MARIADB_INNODB_FULLTEXT_VERSION = (10, 0, 5)


@runtime_checkable
class CapabilityProbe(Protocol):
    """Answers storage capability questions for physical tables."""

    def supports_full_text(self, table_name: str) -> bool: ...


class StaticCapabilityProbe:
    """Capability probe with a fixed answer.

    Either every table supports full-text search (``supported=True``) or only
    the tables listed in ``tables`` do.
    """

    def __init__(self, supported: bool = False, tables: Iterable[str] | None = None) -> None:
        self._supported = supported
        self._tables = frozenset(tables or ())

    def supports_full_text(self, table_name: str) -> bool:
        return self._supported or table_name in self._tables


def engine_supports_full_text(engine_name: str | None, version: tuple[int, ...], is_mariadb: bool) -> bool:
    """Whether a MySQL-family storage engine supports FULLTEXT indexes.

    Args:
        engine_name: Table storage engine (e.g. "InnoDB")
        version: Server version tuple
        is_mariadb: True for MariaDB servers

    Returns:
        True if a FULLTEXT index can be created
    """
    if not engine_name:
        return False
    if engine_name.lower() == "myisam":
        return True
    if engine_name.lower() == "innodb":
        minimum = MARIADB_INNODB_FULLTEXT_VERSION if is_mariadb else MYSQL_INNODB_FULLTEXT_VERSION
        return tuple(version[:3]) >= minimum
    return False


class SqlAlchemyCapabilityProbe:
    """Capability probe backed by a SQLAlchemy engine.

    Only MySQL and MariaDB are considered full-text capable. For a table that
    does not exist yet the server's default storage engine decides.
    """

    FULLTEXT_DIALECTS = ("mysql", "mariadb")

    def __init__(self, engine: Engine | str | URL) -> None:
        """Initialize the probe.

        Args:
            engine: SQLAlchemy engine, or a database URL to create one from
        """
        if not isinstance(engine, Engine):
            engine = create_engine(engine, pool_pre_ping=True)
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def supports_full_text(self, table_name: str) -> bool:
        dialect = self._engine.dialect
        if dialect.name not in self.FULLTEXT_DIALECTS:
            return False

        try:
            with self._engine.connect() as conn:
                engine_name = conn.execute(
                    text(
                        "SELECT ENGINE FROM information_schema.TABLES "
                        "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table"
                    ),
                    {"table": table_name},
                ).scalar()
                if engine_name is None:
                    engine_name = conn.execute(text("SELECT @@default_storage_engine")).scalar()
        except SQLAlchemyError as e:
            raise CapabilityProbeError(table_name, str(e)) from e

        version = dialect.server_version_info or ()
        is_mariadb = bool(getattr(dialect, "is_mariadb", False))
        supported = engine_supports_full_text(engine_name, version, is_mariadb)
        logger.debug(f"Table {table_name}: engine={engine_name}, full-text={supported}")
        return supported
