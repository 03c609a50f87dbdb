"""
Example 02: Scripts and Async Streaming

This example runs a GO-separated script and then reads the result with
AsyncEngine.
"""

import asyncio
import tempfile
from pathlib import Path

from row_stream import AsyncEngine, ConnectionConfig, Engine, ScriptBatchError

SETUP_SCRIPT = """
CREATE TABLE events (id INTEGER PRIMARY KEY, kind TEXT NOT NULL)
GO
INSERT INTO events (kind) VALUES ('signup'), ('login'), ('login')
GO
SELECT 'loaded ' || COUNT(*) || ' events' FROM events
GO
"""


async def read_events(config: ConnectionConfig) -> None:
    async with AsyncEngine.from_config(config) as engine:
        print("2. Async stream:")
        async for kind in engine.stream("SELECT kind FROM events ORDER BY id", str):
            print(f"   - {kind}")
        logins = await engine.fetch_one(
            "SELECT COUNT(*) FROM events WHERE kind = :kind", int, {"kind": "login"}
        )
        print(f"   logins: {logins}\n")


def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    config = ConnectionConfig(driver="sqlite", database=db_path, pool_size=1, batch_delay=0.1)

    print("=== Scripts and Async ===\n")

    with Engine.from_config(config) as engine:
        print("1. Script output:")
        for line in engine.run_script(SETUP_SCRIPT):
            print(f"   {line}")
        print()

        try:
            engine.run_script("SELECT 1\nGO\nSELECT * FROM missing\nGO\nSELECT 3")
        except ScriptBatchError as e:
            print(f"   batch {e.batch_index} failed: {e.detail}\n")

    asyncio.run(read_events(config))

    Path(db_path).unlink()


if __name__ == "__main__":
    main()
