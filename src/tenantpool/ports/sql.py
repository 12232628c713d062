from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, cast

AioodbcConnectFn = Callable[..., Awaitable[Any]]


class SqlExecutorPort(Protocol):
    async def execute(self, connection_string: str, statement: str) -> None:
        ...


class AioodbcSqlExecutor:
    def __init__(
        self,
        connect_fn: AioodbcConnectFn | None = None,
        *,
        timeout_seconds: float = 30.0,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._timeout_seconds = timeout_seconds
        if connect_fn is not None:
            self._connect_fn = connect_fn
        else:
            import aioodbc  # type: ignore[import-untyped]

            self._connect_fn = cast(AioodbcConnectFn, aioodbc.connect)

    async def execute(self, connection_string: str, statement: str) -> None:
        # CREATE LOGIN is rejected inside a user transaction.
        connection = await self._connect_fn(
            dsn=connection_string,
            autocommit=True,
            timeout=self._timeout_seconds,
        )
        try:
            cursor = await connection.cursor()
            try:
                await cursor.execute(statement)
            finally:
                await cursor.close()
        finally:
            await connection.close()


__all__ = ["AioodbcConnectFn", "AioodbcSqlExecutor", "SqlExecutorPort"]
