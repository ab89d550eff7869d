import sqlite3


class SqliteClient:
    """SQLite database client with connection management."""

    def __init__(self, connection_string: str):
        self.connection_string = connection_string
        # The ASGI server may hand requests to a different thread than the
        # one that opened the connection during startup.
        self._connection = sqlite3.connect(self.connection_string, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row

    def execute_query(self, query: str, params=None):
        """Execute a read query and return all results."""
        cursor = self._connection.cursor()
        if params:
            cursor.execute(query, params)
        else:
            cursor.execute(query)

        results = cursor.fetchall()
        cursor.close()
        return results

    def execute_write(self, query: str, params=None) -> int:
        """Execute a write statement, commit it and return the affected row count."""
        with self._connection:
            cursor = self._connection.execute(query, params or ())
            affected = cursor.rowcount
        cursor.close()
        return affected

    def close(self):
        """Close the database connection."""
        self._connection.close()
