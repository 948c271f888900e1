from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, CursorResult


class Statement:
    """
    Single-use executable statement bound to one connection.

    The cursor behind it is released by close(), which `with` calls whether
    execute() succeeded or raised.
    """

    def __init__(
        self,
        connection: Connection,
        sql: str,
        params: Optional[Dict[str, Any]] = None,
        savepoint: bool = False,
    ):
        self.connection = connection
        self.clause = text(sql)
        self.params = params or {}
        self.savepoint = savepoint
        self._result: Optional[CursorResult] = None

    def execute(self) -> None:
        if self.savepoint:
            # A failure rolls back to the savepoint and leaves the outer
            # transaction (and any open metadata cursor) usable
            with self.connection.begin_nested():
                self._result = self.connection.execute(self.clause, self.params)
        else:
            self._result = self.connection.execute(self.clause, self.params)

    def close(self) -> None:
        if self._result is not None:
            self._result.close()
            self._result = None

    def __enter__(self) -> 'Statement':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
