from __future__ import annotations

import typing as t
from pathlib import Path

import alembic.config
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Factory, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN

import progress89.lib.json as json

from ..config.secrets import SQLSecrets
from ..config.storage import SQLSettings, StorageSettings
from ..di import NotReady
from ..provider import LoggingProvider


def create_dsn(config: SQLSettings, secrets: SQLSecrets) -> DSN:
    if config.is_sqlite:
        # sqlite URLs carry nothing but the database path
        return DSN.create(config.driver, database=config.database)
    return DSN.create(
        config.driver,
        database=config.database,
        username=secrets.username.get_secret_value() if secrets.username else None,
        password=secrets.password.get_secret_value() if secrets.password else None,
        port=config.port,
        host=str(config.host) if config.host else None,
    )


def provide_alembic_conf(
    migration_path: Path, config: SQLSettings, secrets: SQLSecrets, root: Path | NotReady
) -> alembic.config.Config:
    if isinstance(root, NotReady):
        raise RuntimeError("root path is unavailable")

    dsn = create_dsn(config, secrets)
    escaped_str = dsn.render_as_string(hide_password=False).replace("%", "%%")

    ac = alembic.config.Config()
    ac.set_main_option("script_location", str(root / migration_path))
    ac.set_section_option("alembic", "sqlalchemy.url", escaped_str)
    ac.set_section_option("alembic", "file_template", "%%(year)d-%%(month).2d-%%(day).2d-%%(slug)s-%%(rev)s")
    return ac


def provide_engine(config: SQLSettings, secrets: SQLSecrets, logging: LoggingProvider) -> sqlalchemy.Engine:
    logger = logging.get_logger()
    dsn = create_dsn(config, secrets)

    kwargs: dict[str, t.Any] = {"json_serializer": json.dumps, "json_deserializer": json.loads, "echo": config.echo}
    if config.is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if config.database == ":memory:":
            # every connection must see the same in-memory database
            kwargs["poolclass"] = sqlalchemy.pool.StaticPool

    engine = sqlalchemy.create_engine(dsn, **kwargs)
    if config.is_sqlite:
        sqlalchemy.event.listen(engine, "connect", disable_pysqlite_transactions)
        sqlalchemy.event.listen(engine, "begin", emit_sqlite_begin)
    else:
        sqlalchemy.event.listen(engine, "connect", register_timezone)

    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": config.driver,
            "database": config.database,
            "host": None if config.is_sqlite else config.host,
            "port": None if config.is_sqlite else config.port,
        },
    )
    return engine


def provide_session(engine: sqlalchemy.Engine) -> sqlalchemy.orm.Session:
    """Create a new session. Caller is responsible for closing it (via di.Manage)."""
    maker = sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False)
    return maker(autobegin=False)


class PersistentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()
    debug: Provider[bool] = Object()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    alembic_config: Provider[alembic.config.Config] = Singleton(
        provide_alembic_conf,
        migration_path=Path("migrations/"),
        config=config.sql.as_(SQLSettings),
        secrets=secrets.sql.as_(SQLSecrets),
        root=root,
    )
    engine: Provider[sqlalchemy.Engine] = Singleton(
        provide_engine,
        config=config.sql.as_(SQLSettings),
        secrets=secrets.sql.as_(SQLSecrets),
        logging=logging,
    )
    session: Provider[sqlalchemy.orm.Session] = Factory(provide_session, engine=engine)


class StorageContainer(DeclarativeContainer):
    config: Provider[StorageSettings] = Configuration(strict=True)
    secrets = Configuration()
    debug: Provider[bool] = Object()
    logging: Provider[LoggingProvider] = Resource()
    root: Provider[Path | NotReady] = Object()

    persistent: Provider[PersistentContainer] = Container(
        PersistentContainer, config=config.persistent, secrets=secrets, debug=debug, logging=logging, root=root
    )


def register_timezone(dbapi_conn: t.Any, _: t.Any) -> None:
    """Set the PostgreSQL connection timezone to UTC.

    Timestamp columns are returned in the connection's timezone, so the
    "created this month" report counts depend on it.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("SET TIMEZONE TO 'UTC'")
    cursor.close()


def disable_pysqlite_transactions(dbapi_conn: t.Any, _: t.Any) -> None:
    # pysqlite's own BEGIN handling breaks SAVEPOINT; SQLAlchemy emits BEGIN instead
    dbapi_conn.isolation_level = None


def emit_sqlite_begin(conn: sqlalchemy.Connection) -> None:
    conn.exec_driver_sql("BEGIN")
