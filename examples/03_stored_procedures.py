"""
Example 03: Stored Procedures

This example demonstrates calling MySQL stored procedures, including
procedures that return several result sets. It needs a reachable MySQL
server and the ``mysql`` extra (``pip install rowbind[mysql]``).
"""

import os
from dataclasses import dataclass
from typing import Annotated

from rowbind import Client, Column, ConnectionConfig, Rows, UInt


@dataclass
class City:
    id: Annotated[UInt, Column("id")] = 0
    name: Annotated[str, Column("name")] = ""
    population: Annotated[int, Column("population")] = 0


@dataclass
class Summary:
    total: Annotated[int, Column("total")] = 0


def main():
    config = ConnectionConfig.from_addr(
        os.environ.get("MYSQL_USER", "root"),
        os.environ.get("MYSQL_PASSWORD", ""),
        os.environ.get("MYSQL_ADDR", "127.0.0.1:3306"),
        os.environ.get("MYSQL_DATABASE", "test"),
        loc="UTC",
        debug=True,
    )

    with Client.from_config(config) as client:
        client.execute("DROP TABLE IF EXISTS city")
        client.execute("""
            CREATE TABLE city (
                id INT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
                name VARCHAR(64) NOT NULL,
                population INT NOT NULL
            )
        """)
        for name, population in [("Amsterdam", 921000), ("Utrecht", 361000), ("Delft", 104000)]:
            client.execute("INSERT INTO city (name, population) VALUES (?, ?)", name, population)

        client.execute("DROP PROCEDURE IF EXISTS split_cities")
        client.execute("""
            CREATE PROCEDURE split_cities(IN threshold INT)
            BEGIN
                SELECT id, name, population FROM city WHERE population >= threshold;
                SELECT id, name, population FROM city WHERE population < threshold;
                SELECT COUNT(*) AS total FROM city;
            END
        """)

        print("=== Stored Procedures ===\n")

        big = client.find_proc(City, "split_cities", 200000)
        print(f"find_proc (first result set only): {[c.name for c in big]}\n")

        large, small, summary = Rows(City), Rows(City), Summary()
        client.find_multiple_proc([large, small, summary], "split_cities", 200000)
        print(f"large: {[c.name for c in large]}")
        print(f"small: {[c.name for c in small]}")
        print(f"total: {summary.total}\n")


if __name__ == "__main__":
    main()
