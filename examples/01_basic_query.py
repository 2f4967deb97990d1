"""
Example 01: Basic Query Execution

This example demonstrates scalar, array and map retrieval with rowbind's Client.
"""

import tempfile
from pathlib import Path

from rowbind import Client, ConnectionConfig, ResultShape


def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    config = ConnectionConfig(driver="sqlite", database=db_path, debug=True)

    with Client.from_config(config) as client:
        client.execute("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT,
                active INTEGER DEFAULT 1
            )
        """)
        client.execute("INSERT INTO users (name, email) VALUES (?, ?)", "Alice", "alice@example.com")
        client.execute("INSERT INTO users (name, email) VALUES (?, ?)", "Bob", None)
        new_id = client.execute_last_id(
            "INSERT INTO users (name, email, active) VALUES (?, ?, ?)", "Charlie", "c@example.com", 0
        )
        print(f"execute_last_id: {new_id}\n")

        print("=== Basic Query Execution ===\n")

        # first_col: a single value, plus whether a row was found
        count, found = client.first_col(int, "SELECT COUNT(*) FROM users")
        print(f"first_col result: {count} total users (found={found})\n")

        # find_array_*: one column, NULLs dropped, None when empty
        emails = client.find_array_string("email", "SELECT id, email FROM users")
        print(f"find_array_string result: {emails}\n")

        # find_map: key column -> value column
        names = client.find_map(int, str, "id", "name", "SELECT id, name FROM users WHERE active = ?", 1)
        print(f"find_map result: {names}\n")

        # exec_json: raw rows as JSON bytes
        body = client.exec_json("SELECT * FROM users WHERE id = ?", ResultShape.HAS_ONE, 1)
        print(f"exec_json result: {body.decode()}\n")

    Path(db_path).unlink()


if __name__ == "__main__":
    main()
