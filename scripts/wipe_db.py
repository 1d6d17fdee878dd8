#!/usr/bin/env python3
"""Wipe the dashboard database clean."""
import sqlite3
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from polydash.config import load_config  # noqa: E402

DB_PATH = Path(load_config().storage.sqlite_path).resolve()

# Show current state
if DB_PATH.exists():
    conn = sqlite3.connect(str(DB_PATH))
    tables = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    print("=== BEFORE WIPE ===")
    for (name,) in tables:
        count = conn.execute(f"SELECT COUNT(*) FROM [{name}]").fetchone()[0]
        print(f"  {name}: {count} rows")
    conn.close()
else:
    print("No database found.")

for suffix in ("", "-shm", "-wal", "-journal"):
    p = Path(str(DB_PATH) + suffix)
    if p.exists():
        p.unlink()
        print(f"Deleted: {p}")

print("\n✅ Database wiped. Run scripts/seed_demo_data.py to repopulate.")
