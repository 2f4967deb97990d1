"""
Example 02: Model Mapping

This example demonstrates mapping query results to Python dataclasses and Pydantic models.
"""

import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel

from rowbind import Client, Column, ConnectionConfig, UInt


@dataclass
class UserDataclass:
    """User model using dataclass"""
    id: Annotated[UInt, Column("id")] = 0
    name: Annotated[str, Column("name")] = ""
    email: str | None = field(default=None, metadata={"db": "email"})
    active: Annotated[bool, Column("active")] = False


class UserPydantic(BaseModel):
    """User model using Pydantic"""
    id: Annotated[int, Column("id")]
    name: Annotated[str, Column("name")]
    active: Annotated[bool, Column("active")] = False


class UserPlain:
    """Plain class bound through explicit registration"""
    def __init__(self):
        self.user_id = 0
        self.display = ""


def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    config = ConnectionConfig(driver="sqlite", database=db_path)

    with Client.from_config(config) as client:
        client.execute("""
            CREATE TABLE users (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT,
                active INTEGER DEFAULT 1
            )
        """)
        client.execute("INSERT INTO users (name, email) VALUES ('Alice', 'alice@example.com')")
        client.execute("INSERT INTO users (name, email, active) VALUES ('Bob', NULL, 0)")

        print("=== Model Mapping ===\n")

        users = client.find(UserDataclass, "SELECT * FROM users ORDER BY id")
        print("Dataclass mapping:")
        for user in users:
            print(f"  - {user}")
        print()

        user = UserPydantic(id=0, name="")
        found = client.first(user, "SELECT id, name, active FROM users WHERE name = ?", "Bob")
        print(f"Pydantic first (found={found}): {user!r}\n")

        client.cache.register(UserPlain, {"id": "user_id", "name": "display"})
        plain = client.find(UserPlain, "SELECT id, name FROM users")
        print(f"Registered plain class: {[(p.user_id, p.display) for p in plain]}\n")

    Path(db_path).unlink()


if __name__ == "__main__":
    main()
