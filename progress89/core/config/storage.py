from __future__ import annotations

import typing as t

import pydantic as p

from .base import BaseSettings


class StorageSettings(BaseSettings):
    persistent: PersistentSettings


class PersistentSettings(BaseSettings):
    sql: SQLSettings


class SQLSettings(BaseSettings):
    driver: t.Literal["postgresql+psycopg", "sqlite+pysqlite"] = "postgresql+psycopg"
    host: p.IPvAnyAddress | str | None = None
    port: int | None = 5432
    database: str
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.driver.startswith("sqlite")
