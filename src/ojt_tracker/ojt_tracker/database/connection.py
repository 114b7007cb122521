from __future__ import annotations

from dataclasses import dataclass

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        """Build from a settings module's ``DB_CONFIG`` mapping."""
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "ojt_tracker")),
            connect_timeout=int(db_config.get("connect_timeout", 10)),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict:
        kwargs = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "charset": "utf8mb4",
            "connection_timeout": self.connect_timeout,
            "autocommit": False,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs


class DatabaseConnection:
    """Opens one connection per unit of work.

    Repositories call ``connect()`` through ``db_cursor``, which owns the
    transaction; nothing here is pooled or shared between requests.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    def connect(self):
        return mysql.connector.connect(**self._config.connect_kwargs())
