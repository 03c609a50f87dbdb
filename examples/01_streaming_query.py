"""
Example 01: Streaming Queries

This example streams rows from SQLite into every target shape: dataclass,
dict, plain text and scalar.
"""

import sqlite3
import tempfile
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from row_stream import ConnectionConfig, Engine, QueryCancelledError, params


class Status(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass
class Customer:
    id: int
    name: str
    status: Status
    tags: list[str] = field(default_factory=list)


def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("""
        CREATE TABLE customers (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            status TEXT NOT NULL,
            tags TEXT,
            address TEXT
        )
    """)
    conn.execute(
        "INSERT INTO customers VALUES (1, 'Alice', 'active', '[\"vip\"]', '{\"city\": \"Oslo\"}')"
    )
    conn.execute("INSERT INTO customers VALUES (2, 'Bob', 'inactive', NULL, NULL)")
    conn.execute("INSERT INTO customers VALUES (3, 'Carol', 'active', '[]', NULL)")
    conn.commit()
    conn.close()

    config = ConnectionConfig(driver="sqlite", database=db_path, pool_size=1)

    with Engine.from_config(config) as engine:
        print("=== Streaming Queries ===\n")

        # Structured target: columns matched to fields by name
        print("1. Dataclass rows:")
        for customer in engine.stream("SELECT * FROM customers ORDER BY id", Customer):
            print(f"   {customer}")
        print()

        # Dict target: embedded JSON text becomes nested values
        print("2. Dict rows:")
        row = engine.fetch_one(
            "SELECT name, address FROM customers WHERE id = :id", dict, params(("id", 1))
        )
        print(f"   {row}\n")

        # Text and scalar targets read the first column
        names = engine.fetch_all("SELECT name FROM customers ORDER BY name", str)
        count = engine.fetch_one("SELECT COUNT(*) FROM customers WHERE status = :status", int,
                                 {"status": "active"})
        print(f"3. Names: {names}")
        print(f"   Active customers: {count}\n")

        # Cancellation between rows
        print("4. Cancelling after the first row:")
        cancel = threading.Event()
        try:
            for customer in engine.stream("SELECT * FROM customers", Customer, cancel=cancel):
                print(f"   got {customer.name}")
                cancel.set()
        except QueryCancelledError as e:
            print(f"   {e}")

    Path(db_path).unlink()


if __name__ == "__main__":
    main()
